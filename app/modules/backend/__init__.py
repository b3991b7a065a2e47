"""Cliente tipado y esquemas de la API de ventas, caja, catálogo y clientes."""
