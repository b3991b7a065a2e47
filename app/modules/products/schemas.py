from pydantic import BaseModel, Field
from typing import Optional, List

from app.modules.backend.schemas import Money, Product, Variant


class VariantOut(Variant):
    """Variante con los datos derivados que muestra la grilla de productos"""
    margen: Optional[Money] = Field(None, description="Margen % sobre el precio de venta")
    stock_bajo: bool = Field(False, description="stock_actual <= stock_minimo")


class ProductOut(Product):
    variantes: List[VariantOut] = Field(default_factory=list)


class ProductList(BaseModel):
    productos: List[ProductOut]
    total: int


class LowStockVariant(BaseModel):
    variante_id: str
    producto_id: str
    nombre: str
    sku: Optional[str] = None
    talle: Optional[str] = None
    color: Optional[str] = None
    stock_actual: int
    stock_minimo: int
    precio_venta: Money


class LowStockResponse(BaseModel):
    variantes: List[LowStockVariant]
    total_count: int
