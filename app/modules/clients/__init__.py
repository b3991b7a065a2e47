"""Clientes del dashboard: búsqueda, alta y edición con validación de DNI/CUIT."""
