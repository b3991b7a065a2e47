from fastapi import APIRouter, Query, Path, status
from typing import Optional

from app.dependencies.backendDependencies import backend_dependency
from app.modules.backend.schemas import (
    ProductCreate, ProductUpdate, Variant, VariantCreate, VariantUpdate
)
from app.modules.products.schemas import LowStockResponse, ProductList, ProductOut
from app.modules.products.service import ProductService

product_router = APIRouter(prefix="/productos", tags=["Products"])


@product_router.get("/", response_model=ProductList)
async def list_products(
    client: backend_dependency,
    q: Optional[str] = Query(None, description="Buscar por nombre o SKU"),
    categoria_id: Optional[int] = Query(None, description="Filtrar por categoría"),
):
    """Productos con sus variantes, margen y alerta de stock bajo."""
    return await ProductService(client).list_products(q, categoria_id)


@product_router.get("/stock-bajo", response_model=LowStockResponse)
async def low_stock_variants(client: backend_dependency):
    """Variantes con stock_actual <= stock_minimo."""
    return await ProductService(client).get_low_stock()


@product_router.post("/", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
async def create_product(data: ProductCreate, client: backend_dependency):
    return await ProductService(client).create_product(data)


@product_router.patch("/{product_id}", response_model=ProductOut)
async def update_product(
    data: ProductUpdate,
    client: backend_dependency,
    product_id: str = Path(..., description="ID del producto"),
):
    return await ProductService(client).update_product(product_id, data)


@product_router.post("/variantes", response_model=Variant, status_code=status.HTTP_201_CREATED)
async def create_variant(data: VariantCreate, client: backend_dependency):
    return await ProductService(client).create_variant(data)


@product_router.patch("/variantes/{variant_id}", response_model=Variant)
async def update_variant(
    data: VariantUpdate,
    client: backend_dependency,
    variant_id: str = Path(..., description="ID de la variante"),
):
    """Editar una variante. El stock no se modifica desde acá."""
    return await ProductService(client).update_variant(variant_id, data)
