"""Core: dominio, contratos y servicios del pipeline de especificaciones."""
