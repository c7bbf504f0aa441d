"""Adaptadores de I/O: HTTP y exportación."""
