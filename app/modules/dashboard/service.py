"""
Resumen del día: ventas de hoy y estado de caja.

Cada consulta falla por separado: sin ventas se muestra cero y sin estado
de caja se muestra cerrada.
"""
import logging
from decimal import Decimal
from typing import List, Optional

from app.common.exceptions import RemoteRequestFailed
from app.modules.backend.client import BackendClient
from app.modules.backend.schemas import CashStatus, SaleResponse
from app.modules.dashboard.schemas import DashboardSummary

logger = logging.getLogger(__name__)


class DashboardService:

    def __init__(self, client: BackendClient):
        self.client = client

    async def _sales_today(self) -> List[SaleResponse]:
        try:
            return await self.client.fetch_sales_today()
        except RemoteRequestFailed as e:
            logger.warning(f"Sales today unavailable: {e}")
            return []

    async def _cash_status(self) -> Optional[CashStatus]:
        try:
            return await self.client.fetch_cash_status()
        except RemoteRequestFailed as e:
            logger.warning(f"Cash status unavailable: {e}")
            return None

    async def get_summary(self) -> DashboardSummary:
        sales = await self._sales_today()
        status = await self._cash_status()

        summary = DashboardSummary(
            ventas_hoy=len(sales),
            total_ventas_hoy=sum((sale.total for sale in sales), Decimal("0")),
        )
        if status is not None:
            summary.estado_caja = status.estado
            summary.monto_apertura = status.monto_apertura
            summary.fecha_apertura = status.fecha_apertura
        return summary
