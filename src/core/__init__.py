"""Core del cliente de catálogo: dominio, contratos y orquestación."""
