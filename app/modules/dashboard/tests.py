from decimal import Decimal

import pytest

from app.modules.backend.schemas import RegisterState
from app.modules.dashboard.service import DashboardService


class TestDashboardService:

    @pytest.mark.anyio
    async def test_summary_with_sales_and_open_register(self, fake_backend):
        fake_backend.sales = [
            {"id": "venta-1", "total": 1500, "metodo_pago": "Efectivo"},
            {"id": "venta-2", "total": 8999.99, "metodo_pago": "QR"},
        ]
        fake_backend.open_register(2000)

        async with fake_backend.client() as backend:
            summary = await DashboardService(backend).get_summary()

        assert summary.ventas_hoy == 2
        assert summary.total_ventas_hoy == Decimal("10499.99")
        assert summary.estado_caja == RegisterState.OPEN
        assert summary.monto_apertura == Decimal("2000")
        assert summary.fecha_apertura is not None

    @pytest.mark.anyio
    async def test_failures_degrade_independently(self, fake_backend):
        fake_backend.fail("GET", "/ventas/hoy", 500)
        fake_backend.open_register(500)

        async with fake_backend.client() as backend:
            summary = await DashboardService(backend).get_summary()

        assert summary.ventas_hoy == 0
        assert summary.total_ventas_hoy == Decimal("0")
        assert summary.estado_caja == RegisterState.OPEN

    @pytest.mark.anyio
    async def test_no_register_defaults_to_closed(self, fake_backend):
        fake_backend.fail("GET", "/caja/estado", 502)

        async with fake_backend.client() as backend:
            summary = await DashboardService(backend).get_summary()

        assert summary.estado_caja == RegisterState.CLOSED
        assert summary.monto_apertura == Decimal("0")
        assert summary.fecha_apertura is None


    @pytest.mark.anyio
    async def test_unreadable_bodies_degrade(self, fake_backend):
        fake_backend.fail("GET", "/ventas/hoy", 200, [{"id": "venta-1"}])
        fake_backend.fail("GET", "/caja/estado", 200, {"estado": "desconocido"})

        async with fake_backend.client() as backend:
            summary = await DashboardService(backend).get_summary()

        assert summary.ventas_hoy == 0
        assert summary.estado_caja == RegisterState.CLOSED


class TestDashboardAPI:

    def test_summary(self, client, auth_headers, fake_backend):
        fake_backend.sales = [{"id": "venta-1", "total": 250.5, "metodo_pago": "Tarjeta"}]

        response = client.get("/dashboard/resumen", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {
            "ventas_hoy": 1,
            "total_ventas_hoy": 250.5,
            "estado_caja": "cerrada",
            "monto_apertura": 0.0,
            "fecha_apertura": None,
        }

    def test_requires_token(self, client):
        assert client.get("/dashboard/resumen").status_code == 401
