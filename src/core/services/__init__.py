"""Servicios de orquestación: dispatcher, store, controladores y caché."""
