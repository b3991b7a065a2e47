"""
Routers FastAPI para el módulo POS (Point of Sale)

Define los endpoints del dashboard para:
- Venta: carrito de la sesión, escaneo, cantidades, cliente, pago y confirmación
- Caja: estado con saldo estimado, apertura, cierre y movimientos manuales

El estado de la venta vive en la sesión del operador autenticado. Los
errores del POS se devuelven como {"detail": mensaje}.
"""

from fastapi import APIRouter, Path, status

from app.dependencies.authDependencies import auth_dependency
from app.dependencies.backendDependencies import backend_dependency
from app.modules.backend.schemas import CashMovement, CashStatus
from app.modules.pos.dependencies import session_dependency
from app.modules.pos.schemas import (
    # Sale schemas
    CartOut, ScanRequest, QuantityDelta, ClientSelection, PaymentSelection,
    SaleConfirmation,

    # Cash schemas
    CashOverview, CashOpenRequest, CashCloseRequest, CashMovementRequest,
)
from app.modules.pos.services import CashRegisterService, CheckoutService


# ===== SALE ROUTER =====

sale_router = APIRouter(prefix="/pos/venta", tags=["POS"])


@sale_router.get("", response_model=CartOut)
async def get_current_sale(session: session_dependency):
    """Carrito, totales, cliente y medio de pago de la venta en curso."""
    return CartOut.from_session(session)


@sale_router.post("/catalogo/recargar", response_model=CartOut)
async def reload_catalog(session: session_dependency, client: backend_dependency):
    """
    Recargar el catálogo de escaneo desde la API.

    Las líneas ya cargadas conservan su precio y tope de stock.
    """
    await CheckoutService(session, client).load_catalog()
    return CartOut.from_session(session)


@sale_router.post("/escanear", response_model=CartOut)
async def scan_code(data: ScanRequest, session: session_dependency, client: backend_dependency):
    """
    Escanear un SKU (sin distinguir mayúsculas) o ID de variante.

    - 404 si no hay una única variante con ese código
    - 409 si no hay stock o se supera el stock disponible
    """
    await CheckoutService(session, client).scan(data.codigo)
    return CartOut.from_session(session)


@sale_router.post("/items/{variant_id}", response_model=CartOut)
async def add_item(
    session: session_dependency,
    client: backend_dependency,
    variant_id: str = Path(..., description="ID de la variante"),
):
    """Agregar una unidad de una variante elegida de la lista."""
    await CheckoutService(session, client).add_variant(variant_id)
    return CartOut.from_session(session)


@sale_router.patch("/items/{variant_id}", response_model=CartOut)
async def update_item_quantity(
    data: QuantityDelta,
    session: session_dependency,
    client: backend_dependency,
    variant_id: str = Path(..., description="ID de la variante"),
):
    """
    Sumar o restar unidades a una línea.

    Si la cantidad queda en cero o menos, la línea se quita.
    """
    CheckoutService(session, client).adjust_quantity(variant_id, data.delta)
    return CartOut.from_session(session)


@sale_router.delete("/items/{variant_id}", response_model=CartOut)
async def remove_item(
    session: session_dependency,
    client: backend_dependency,
    variant_id: str = Path(..., description="ID de la variante"),
):
    CheckoutService(session, client).remove_line(variant_id)
    return CartOut.from_session(session)


@sale_router.delete("", response_model=CartOut)
async def clear_cart(session: session_dependency, client: backend_dependency):
    """Vaciar el carrito (cliente y medio de pago se mantienen)."""
    CheckoutService(session, client).clear_cart()
    return CartOut.from_session(session)


@sale_router.put("/cliente", response_model=CartOut)
async def select_client(data: ClientSelection, session: session_dependency, client: backend_dependency):
    """Elegir cliente; null o vacío es consumidor final."""
    CheckoutService(session, client).select_client(data.cliente_id)
    return CartOut.from_session(session)


@sale_router.put("/pago", response_model=CartOut)
async def select_payment_method(data: PaymentSelection, session: session_dependency,
                                client: backend_dependency):
    CheckoutService(session, client).set_payment_method(data.metodo_pago)
    return CartOut.from_session(session)


@sale_router.post("/confirmar", response_model=SaleConfirmation, status_code=status.HTTP_201_CREATED)
async def confirm_sale(session: session_dependency, client: backend_dependency):
    """
    Enviar la venta a la API.

    Si la API la acepta se limpia la venta en curso y se recarga el stock;
    si la rechaza el carrito queda igual y se devuelve su `detail`.
    """
    sale = await CheckoutService(session, client).checkout()
    return SaleConfirmation(venta=sale, carrito=CartOut.from_session(session))


# ===== CASH REGISTER ROUTER =====

cash_router = APIRouter(prefix="/pos/caja", tags=["POS"])


@cash_router.get("", response_model=CashOverview)
async def get_cash_overview(auth_context: auth_dependency, session: session_dependency,
                            client: backend_dependency):
    """
    Estado de caja.

    Con la caja abierta incluye movimientos, totales y saldo estimado
    (apertura + ingresos - egresos; las ventas no se suman).
    """
    service = CashRegisterService(session, client, auth_context.user_id)
    return await service.overview()


@cash_router.post("/apertura", response_model=CashStatus, status_code=status.HTTP_201_CREATED)
async def open_register(data: CashOpenRequest, auth_context: auth_dependency,
                        session: session_dependency, client: backend_dependency):
    """
    Abrir caja con el efectivo inicial; el usuario se toma del token.

    409 si la caja ya está abierta.
    """
    service = CashRegisterService(session, client, auth_context.user_id)
    return await service.open_register(data.monto_apertura)


@cash_router.post("/cierre", response_model=CashStatus)
async def close_register(data: CashCloseRequest, auth_context: auth_dependency,
                         session: session_dependency, client: backend_dependency):
    """
    Cerrar caja con el efectivo contado.

    Requiere `confirmar: true`; el cierre no se puede deshacer.
    409 si no hay una caja abierta.
    """
    service = CashRegisterService(session, client, auth_context.user_id)
    return await service.close_register(data.monto_real_efectivo, data.observaciones, data.confirmar)


@cash_router.post("/movimientos", response_model=CashMovement, status_code=status.HTTP_201_CREATED)
async def create_movement(data: CashMovementRequest, auth_context: auth_dependency,
                          session: session_dependency, client: backend_dependency):
    """Registrar un ingreso o egreso manual en la caja abierta."""
    service = CashRegisterService(session, client, auth_context.user_id)
    return await service.record_movement(data.tipo, data.monto, data.descripcion)
