"""
Esquemas Pydantic de las rutas POS del dashboard

Define la entrada y salida para:
- Venta: carrito, escaneo, cantidades, cliente, medio de pago y confirmación
- Caja: resumen con saldo estimado, apertura, cierre y movimientos
"""

from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional, List, Union

from app.modules.backend.schemas import (
    CashMovement, CashStatus, Money, PaymentMethod, SaleResponse
)
from app.modules.pos.cart import Cart, compute_totals
from app.modules.pos.ledger import MovementSummary
from app.modules.pos.sessions import PosSession


# ===== SALE SCHEMAS =====

class CartLineOut(BaseModel):
    variant_id: str
    product_id: str
    name: str
    sku: Optional[str] = None
    talle: Optional[str] = None
    color: Optional[str] = None
    unit_price: Money
    quantity: int
    stock_ceiling: int
    line_total: Money


class CartOut(BaseModel):
    """Estado de la venta en curso"""
    items: List[CartLineOut] = Field(default_factory=list)
    total_items: int = 0
    total_amount: Money = Decimal("0")
    cliente_id: Optional[str] = None
    metodo_pago: str
    catalogo_cargado: bool = False

    @classmethod
    def from_session(cls, session: PosSession) -> "CartOut":
        cart: Cart = session.cart
        totals = compute_totals(cart)
        return cls(
            items=[
                CartLineOut(
                    variant_id=line.variant_id,
                    product_id=line.product_id,
                    name=line.name,
                    sku=line.sku,
                    talle=line.talle,
                    color=line.color,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    stock_ceiling=line.stock_ceiling,
                    line_total=line.line_total,
                )
                for line in cart
            ],
            total_items=totals.total_items,
            total_amount=totals.total_amount,
            cliente_id=session.selected_client_id,
            metodo_pago=session.payment_method,
            catalogo_cargado=bool(session.catalog),
        )


class ScanRequest(BaseModel):
    codigo: str = Field(..., description="SKU o ID de la variante")


class QuantityDelta(BaseModel):
    delta: int = Field(..., description="Cantidad a sumar (negativa para restar)")


class ClientSelection(BaseModel):
    cliente_id: Optional[str] = Field(None, description="Vacío o null = consumidor final")


class PaymentSelection(BaseModel):
    metodo_pago: PaymentMethod


class SaleConfirmation(BaseModel):
    # None cuando la API aceptó la venta pero su respuesta no se pudo leer
    venta: Optional[SaleResponse] = None
    mensaje: str = "¡Venta registrada correctamente!"
    carrito: CartOut


# ===== CASH SCHEMAS =====

class MovementSummaryOut(BaseModel):
    total_ingresos: Money
    total_egresos: Money
    cantidad: int

    @classmethod
    def from_summary(cls, summary: MovementSummary) -> "MovementSummaryOut":
        return cls(
            total_ingresos=summary.total_income,
            total_egresos=summary.total_expense,
            cantidad=summary.count,
        )


class CashOverview(BaseModel):
    """Estado de caja con saldo estimado (sin ventas, sólo movimientos manuales)"""
    estado: Optional[CashStatus] = None
    abierta: bool = False
    movimientos: List[CashMovement] = Field(default_factory=list)
    resumen: Optional[MovementSummaryOut] = None
    saldo_estimado: Optional[Money] = None


class CashOpenRequest(BaseModel):
    monto_apertura: Decimal = Field(..., description="Efectivo inicial en caja")


class CashCloseRequest(BaseModel):
    monto_real_efectivo: Decimal = Field(..., description="Efectivo contado al cierre")
    observaciones: Optional[str] = Field(None, max_length=500)
    confirmar: bool = Field(False, description="Debe ser true: el cierre no se puede deshacer")


class CashMovementRequest(BaseModel):
    """Sin validación estricta acá: la hace ledger.validate_movement con los errores del POS"""
    tipo: str
    monto: Union[Decimal, str]
    descripcion: Optional[str] = None
