"""
Carrito de venta del POS.

Acumula variantes escaneadas o elegidas en líneas con precio, respeta el
tope de stock de cada variante y arma la venta que se envía a la API.

Reglas:
- Una sola línea por variante; volver a agregarla suma 1.
- El precio unitario y el tope de stock se toman al crear la línea y no se
  vuelven a leer del catálogo.
- 0 < cantidad <= tope de stock en todo momento.
- Una operación que falla deja el carrito exactamente como estaba.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterator, List, Optional, Sequence, Tuple

from app.common.exceptions import EmptyCart, OutOfStock, ScanNotFound, StockExceeded
from app.modules.backend.schemas import Product, SaleCreate, SaleItemCreate, Variant


@dataclass(frozen=True)
class ScanCandidate:
    """Variante aplanada con el nombre de su producto, lista para escanear"""
    variant_id: str
    product_id: str
    name: str
    sku: Optional[str]
    talle: Optional[str]
    color: Optional[str]
    price: Decimal
    stock: int

    @classmethod
    def from_variant(cls, product: Product, variant: Variant) -> "ScanCandidate":
        return cls(
            variant_id=variant.id,
            product_id=product.id,
            name=product.nombre,
            sku=variant.sku or None,
            talle=variant.talle or None,
            color=variant.color or None,
            price=variant.precio_venta,
            stock=variant.stock_actual,
        )


@dataclass
class CartLine:
    """Línea del carrito"""
    variant_id: str
    product_id: str
    name: str
    sku: Optional[str]
    talle: Optional[str]
    color: Optional[str]
    unit_price: Decimal
    quantity: int
    stock_ceiling: int

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class CartTotals:
    total_items: int
    total_amount: Decimal


class Cart:
    """Lista ordenada de líneas, única por variante."""

    def __init__(self, lines: Optional[Sequence[CartLine]] = None):
        self._lines: List[CartLine] = list(lines or [])

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self._lines)

    def get(self, variant_id: str) -> Optional[CartLine]:
        for line in self._lines:
            if line.variant_id == variant_id:
                return line
        return None

    def add_variant(self, variant: ScanCandidate) -> "Cart":
        """
        Agregar una unidad de la variante.

        - Nueva en el carrito: requiere stock > 0 (OutOfStock si no).
        - Ya presente: suma 1 salvo que supere el tope capturado al
          agregarla (StockExceeded, carrito sin cambios).
        """
        existing = self.get(variant.variant_id)
        if existing is not None:
            if existing.quantity + 1 > existing.stock_ceiling:
                raise StockExceeded(existing.stock_ceiling)
            existing.quantity += 1
            return self

        if variant.stock <= 0:
            raise OutOfStock()

        self._lines.append(CartLine(
            variant_id=variant.variant_id,
            product_id=variant.product_id,
            name=variant.name,
            sku=variant.sku,
            talle=variant.talle,
            color=variant.color,
            unit_price=variant.price,
            quantity=1,
            stock_ceiling=variant.stock,
        ))
        return self

    def adjust_quantity(self, variant_id: str, delta: int) -> "Cart":
        """
        Sumar `delta` (con signo) a la cantidad de una línea.

        Si la cantidad resultante es <= 0 la línea se elimina; si supera el
        tope se rechaza con StockExceeded. Un id desconocido no hace nada.
        """
        line = self.get(variant_id)
        if line is None:
            return self

        new_quantity = line.quantity + delta
        if new_quantity <= 0:
            return self.remove_line(variant_id)
        if new_quantity > line.stock_ceiling:
            raise StockExceeded(line.stock_ceiling)

        line.quantity = new_quantity
        return self

    def remove_line(self, variant_id: str) -> "Cart":
        self._lines = [line for line in self._lines if line.variant_id != variant_id]
        return self

    def clear(self) -> "Cart":
        self._lines = []
        return self


def resolve_scan(code: str, catalog: Sequence[ScanCandidate]) -> ScanCandidate:
    """
    Buscar la variante de un código escaneado.

    Primero por SKU sin distinguir mayúsculas, después por id exacto. No hay
    coincidencias parciales: sin match, o con más de una variante para el
    mismo SKU, se lanza ScanNotFound.
    """
    code = (code or "").strip()
    if not code:
        raise ScanNotFound(code)

    term = code.lower()
    by_sku = [c for c in catalog if c.sku and c.sku.lower() == term]
    if len(by_sku) == 1:
        return by_sku[0]
    if len(by_sku) > 1:
        raise ScanNotFound(code)

    by_id = [c for c in catalog if c.variant_id == code]
    if len(by_id) == 1:
        return by_id[0]
    raise ScanNotFound(code)


def compute_totals(cart: Cart) -> CartTotals:
    """Totales del carrito, sin redondeo."""
    return CartTotals(
        total_items=sum(line.quantity for line in cart),
        total_amount=sum((line.line_total for line in cart), Decimal("0")),
    )


def build_sale_request(cart: Cart, client_id: Optional[str], payment_method: str) -> SaleCreate:
    """
    Armar la venta para POST /ventas/.

    Sin cliente es una venta a consumidor final. El total local viaja para
    que la API lo compare con el suyo, que es el que vale.
    """
    if len(cart) == 0:
        raise EmptyCart()

    return SaleCreate(
        cliente_id=client_id or None,
        metodo_pago=payment_method,
        items=[
            SaleItemCreate(
                variante_id=line.variant_id,
                cantidad=line.quantity,
                precio_unitario=line.unit_price,
            )
            for line in cart
        ],
        total=compute_totals(cart).total_amount,
    )
