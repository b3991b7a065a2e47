from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from app.modules.backend.schemas import Money, RegisterState


class DashboardSummary(BaseModel):
    """Resumen del día para la pantalla de inicio"""
    ventas_hoy: int = 0
    total_ventas_hoy: Money = Decimal("0")
    estado_caja: RegisterState = RegisterState.CLOSED
    monto_apertura: Money = Decimal("0")
    fecha_apertura: Optional[datetime] = None
