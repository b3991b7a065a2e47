"""
Módulo POS (Point of Sale) - Dashboard de caja

Este módulo maneja las operaciones de punto de venta del operador:

VENTA:
- Carrito en memoria por operador (sesión), con tope de stock por línea
- Escaneo por SKU (sin distinguir mayúsculas) o ID de variante
- Cliente opcional (consumidor final) y medio de pago Efectivo/Tarjeta/QR
- Confirmación contra la API; sólo una venta aceptada limpia la sesión

CAJA:
- Estado de la caja actual, apertura y cierre con confirmación
- Movimientos manuales de ingreso/egreso
- Saldo estimado: apertura + ingresos - egresos (las ventas no se suman)

REGLAS DE NEGOCIO:
- Ninguna validación fallida modifica el carrito ni la caja
- Movimientos sólo con la caja abierta, rechazados antes de llamar a la API
- Una acción a la vez por sesión; las concurrentes fallan con 409
"""
