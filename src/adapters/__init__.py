"""Adaptadores: parsers por familia de entrada, HTTP y exportación JSON."""
