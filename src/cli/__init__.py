"""Capa de presentación de consola (Typer + Rich)."""
