"""Servicios del Core: builder, resolver y orquestación del pipeline."""
