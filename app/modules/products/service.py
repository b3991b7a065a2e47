"""
Lógica de catálogo del dashboard.

- Aplanado de variantes para el escáner del POS
- Búsqueda por nombre de producto o SKU
- Margen y alerta de stock bajo por variante
"""
import logging
from decimal import Decimal
from typing import List, Optional, Sequence

from app.modules.backend.client import BackendClient
from app.modules.backend.schemas import (
    Product, ProductCreate, ProductUpdate, Variant, VariantCreate, VariantUpdate
)
from app.modules.pos.cart import ScanCandidate
from app.modules.products.schemas import (
    LowStockResponse, LowStockVariant, ProductList, ProductOut, VariantOut
)

logger = logging.getLogger(__name__)


def flatten_variants(products: Sequence[Product]) -> List[ScanCandidate]:
    """Una entrada por variante, en el orden del catálogo."""
    return [
        ScanCandidate.from_variant(product, variant)
        for product in products
        for variant in product.variantes
    ]


def filter_products(products: Sequence[Product], term: Optional[str]) -> List[Product]:
    """Productos cuyo nombre o algún SKU contiene el término (sin distinguir mayúsculas)."""
    lower_term = (term or "").strip().lower()
    if not lower_term:
        return list(products)

    return [
        product for product in products
        if lower_term in product.nombre.lower()
        or any(v.sku and lower_term in v.sku.lower() for v in product.variantes)
    ]


def variant_margin(variant: Variant) -> Optional[Decimal]:
    """(venta - costo) / venta * 100, sólo si ambos precios son positivos."""
    cost = variant.precio_costo or Decimal("0")
    price = variant.precio_venta or Decimal("0")
    if price <= 0 or cost <= 0:
        return None
    return (price - cost) / price * 100


def is_low_stock(variant: Variant) -> bool:
    return variant.stock_actual <= (variant.stock_minimo or 0)


def to_product_out(product: Product) -> ProductOut:
    return ProductOut(
        **product.model_dump(exclude={"variantes"}),
        variantes=[
            VariantOut(
                **variant.model_dump(),
                margen=variant_margin(variant),
                stock_bajo=is_low_stock(variant),
            )
            for variant in product.variantes
        ],
    )


class ProductService:
    """Operaciones de catálogo contra la API"""

    def __init__(self, client: BackendClient):
        self.client = client

    async def list_products(self, term: Optional[str] = None,
                            categoria_id: Optional[int] = None) -> ProductList:
        products = await self.client.fetch_products(categoria_id)
        matches = filter_products(products, term)
        return ProductList(
            productos=[to_product_out(p) for p in matches],
            total=len(matches),
        )

    async def get_low_stock(self) -> LowStockResponse:
        products = await self.client.fetch_products()
        items = [
            LowStockVariant(
                variante_id=variant.id,
                producto_id=product.id,
                nombre=product.nombre,
                sku=variant.sku,
                talle=variant.talle,
                color=variant.color,
                stock_actual=variant.stock_actual,
                stock_minimo=variant.stock_minimo or 0,
                precio_venta=variant.precio_venta,
            )
            for product in products
            for variant in product.variantes
            if is_low_stock(variant)
        ]
        return LowStockResponse(variantes=items, total_count=len(items))

    async def create_product(self, data: ProductCreate) -> ProductOut:
        product = await self.client.create_product(data)
        logger.info(f"Product created: {product.id}")
        return to_product_out(product)

    async def update_product(self, product_id: str, data: ProductUpdate) -> ProductOut:
        return to_product_out(await self.client.update_product(product_id, data))

    async def create_variant(self, data: VariantCreate) -> Variant:
        variant = await self.client.create_variant(data)
        logger.info(f"Variant created: {variant.id} for product {variant.producto_id}")
        return variant

    async def update_variant(self, variant_id: str, data: VariantUpdate) -> Variant:
        return await self.client.update_variant(variant_id, data)
