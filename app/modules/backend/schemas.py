"""
Esquemas Pydantic del contrato REST de la API de ventas.

Reflejan los cuerpos que la API externa recibe y devuelve:
- Productos y variantes (catálogo)
- Clientes
- Ventas
- Caja: estado, apertura/cierre y movimientos

Los montos se manejan como Decimal y viajan como números JSON.
"""

from pydantic import BaseModel, Field, PlainSerializer
from decimal import Decimal
from typing import Optional, List, Annotated
from datetime import datetime
from enum import Enum


Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


# ===== ENUMS =====

class RegisterState(str, Enum):
    OPEN = "abierta"
    CLOSED = "cerrada"


class MovementType(str, Enum):
    INCOME = "ingreso"
    EXPENSE = "egreso"


class PaymentMethod(str, Enum):
    CASH = "Efectivo"
    CARD = "Tarjeta"
    QR = "QR"


# ===== CATALOG SCHEMAS =====

class Variant(BaseModel):
    """Variante de producto (talle/color concreto)"""
    id: str
    sku: Optional[str] = None
    talle: Optional[str] = None
    color: Optional[str] = None
    precio_venta: Money
    stock_actual: int = 0
    producto_id: str
    precio_costo: Optional[Money] = None
    stock_minimo: Optional[int] = None


class VariantCreate(BaseModel):
    producto_id: str
    sku: Optional[str] = None
    talle: Optional[str] = None
    color: Optional[str] = None
    precio_venta: Money = Field(..., ge=0)
    stock_actual: int = Field(default=0, ge=0)
    stock_minimo: int = Field(default=0, ge=0)
    precio_costo: Optional[Money] = Field(None, ge=0)


class VariantUpdate(BaseModel):
    sku: Optional[str] = None
    talle: Optional[str] = None
    color: Optional[str] = None
    precio_venta: Optional[Money] = Field(None, ge=0)
    precio_costo: Optional[Money] = Field(None, ge=0)
    stock_minimo: Optional[int] = Field(None, ge=0)


class Product(BaseModel):
    """Producto con sus variantes anidadas"""
    id: str
    nombre: str
    descripcion: Optional[str] = None
    marca_id: Optional[int] = None
    created_at: Optional[datetime] = None
    variantes: List[Variant] = Field(default_factory=list)


class ProductCreate(BaseModel):
    nombre: str = Field(..., min_length=1)
    descripcion: Optional[str] = None
    marca_id: Optional[int] = None


class ProductUpdate(BaseModel):
    nombre: Optional[str] = None
    descripcion: Optional[str] = None
    marca_id: Optional[int] = None


# ===== CLIENT SCHEMAS =====

class Client(BaseModel):
    id: str
    nombre: str
    dni_cuit: Optional[str] = None
    email: Optional[str] = None
    telefono: Optional[str] = None
    direccion: Optional[str] = None
    ciudad: Optional[str] = None
    tipo_iva: Optional[str] = None
    created_at: Optional[datetime] = None


class ClientCreate(BaseModel):
    nombre: str
    dni_cuit: Optional[str] = None
    email: Optional[str] = None
    telefono: Optional[str] = None
    direccion: Optional[str] = None
    ciudad: Optional[str] = None
    tipo_iva: Optional[str] = None


class ClientUpdate(BaseModel):
    nombre: Optional[str] = None
    dni_cuit: Optional[str] = None
    email: Optional[str] = None
    telefono: Optional[str] = None
    direccion: Optional[str] = None
    ciudad: Optional[str] = None
    tipo_iva: Optional[str] = None


# ===== SALE SCHEMAS =====

class SaleItemCreate(BaseModel):
    variante_id: str
    cantidad: int = Field(..., gt=0)
    precio_unitario: Money


class SaleCreate(BaseModel):
    """Venta a enviar; el total se recalcula en la API, que puede rechazar por diferencia"""
    cliente_id: Optional[str] = None
    metodo_pago: str
    items: List[SaleItemCreate]
    total: Money


class SaleResponse(BaseModel):
    id: str
    total: Money
    metodo_pago: str
    created_at: Optional[datetime] = None


# ===== CASH SCHEMAS =====

class CashStatus(BaseModel):
    id: str
    estado: RegisterState
    monto_apertura: Money = Decimal("0")
    fecha_apertura: Optional[datetime] = None
    monto_real_efectivo: Optional[Money] = None

    @property
    def is_open(self) -> bool:
        return self.estado == RegisterState.OPEN


class CashOpen(BaseModel):
    monto_apertura: Money
    usuario_id: str


class CashClose(BaseModel):
    monto_real_efectivo: Money
    observaciones: Optional[str] = None


class CashMovement(BaseModel):
    id: str
    caja_id: Optional[str] = None
    tipo: MovementType
    monto: Money
    descripcion: str
    created_at: Optional[datetime] = None
    usuario_id: Optional[str] = None


class CashMovementCreate(BaseModel):
    tipo: MovementType
    monto: Money
    descripcion: str
