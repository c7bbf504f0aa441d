"""Modelos y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2) y las
  variantes de estado de los controladores.
- El dominio no conoce HTTP, CLI, ni la caché: solo conceptos del catálogo.
"""
