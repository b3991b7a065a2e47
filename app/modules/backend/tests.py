"""
Tests del cliente de la API: cabeceras, errores y envío parcial en PATCH.
"""
import json
from decimal import Decimal

import httpx
import pytest

from app.common.exceptions import InvalidRemoteResponse, RemoteRequestFailed
from app.modules.backend.client import BackendClient, extract_detail
from app.modules.backend.schemas import CashMovementCreate, MovementType, SaleCreate, VariantUpdate


class TestExtractDetail:

    def test_string_detail_verbatim(self):
        response = httpx.Response(400, json={"detail": "Caja ya abierta"})
        assert extract_detail(response, "fallback") == "Caja ya abierta"

    def test_structured_detail_is_serialized(self):
        response = httpx.Response(422, json={"detail": [{"msg": "campo requerido"}]})
        assert extract_detail(response, "fallback") == '[{"msg": "campo requerido"}]'

    @pytest.mark.parametrize("response", [
        httpx.Response(500, text="Internal Server Error"),
        httpx.Response(500, json={"error": "x"}),
        httpx.Response(500, json=["x"]),
        httpx.Response(500),
    ])
    def test_fallback(self, response):
        assert extract_detail(response, "Failed to process sale") == "Failed to process sale"


class TestBackendClient:

    @pytest.mark.anyio
    async def test_sends_bearer_and_json_headers(self, fake_backend):
        async with fake_backend.client("abc.def") as backend:
            products = await backend.fetch_products()

        assert [p.id for p in products] == ["p-1", "p-2"]
        request = fake_backend.requests[0]
        assert request.headers["Authorization"] == "Bearer abc.def"
        assert request.headers["Content-Type"] == "application/json"

    @pytest.mark.anyio
    async def test_category_filter_is_sent(self, fake_backend):
        async with fake_backend.client() as backend:
            await backend.fetch_products(categoria_id=4)

        assert fake_backend.requests[0].url.params["categoria_id"] == "4"

    @pytest.mark.anyio
    async def test_error_detail_and_status_are_kept(self, fake_backend):
        fake_backend.fail("POST", "/caja/movimiento", 400, {"detail": "No hay caja abierta"})
        async with fake_backend.client() as backend:
            with pytest.raises(RemoteRequestFailed) as exc:
                await backend.create_cash_movement(
                    CashMovementCreate(tipo=MovementType.INCOME, monto=Decimal("10"), descripcion="x")
                )

        assert exc.value.detail == "No hay caja abierta"
        assert exc.value.upstream_status == 400
        assert exc.value.status_code == 400

    @pytest.mark.anyio
    async def test_server_error_maps_to_bad_gateway(self, fake_backend):
        fake_backend.fail("GET", "/ventas/hoy", 503)
        async with fake_backend.client() as backend:
            with pytest.raises(RemoteRequestFailed) as exc:
                await backend.fetch_sales_today()

        assert exc.value.detail == "Failed to fetch sales"
        assert exc.value.status_code == 502

    @pytest.mark.anyio
    async def test_transport_error(self):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        async with BackendClient("t", base_url="http://api.test", transport=httpx.MockTransport(refuse)) as backend:
            with pytest.raises(RemoteRequestFailed) as exc:
                await backend.fetch_cash_status()

        assert exc.value.status_code == 502
        assert "Connection refused" in exc.value.detail

    @pytest.mark.anyio
    async def test_null_cash_status(self, fake_backend):
        async with fake_backend.client() as backend:
            assert await backend.fetch_cash_status() is None

    @pytest.mark.anyio
    async def test_patch_sends_only_set_fields(self, fake_backend):
        async with fake_backend.client() as backend:
            variant = await backend.update_variant("v-1", VariantUpdate(precio_venta=Decimal("1750.50")))

        body = json.loads(fake_backend.calls("PATCH", "/productos/variante/v-1")[0].content)
        assert body == {"precio_venta": 1750.5}
        assert variant.precio_venta == Decimal("1750.5")
        assert variant.stock_actual == 3

    @pytest.mark.anyio
    async def test_money_travels_as_json_number(self, fake_backend):
        fake_backend.open_register()
        async with fake_backend.client() as backend:
            await backend.create_cash_movement(
                CashMovementCreate(tipo=MovementType.EXPENSE, monto=Decimal("99.90"), descripcion="Flete")
            )

        body = json.loads(fake_backend.calls("POST", "/caja/movimiento")[0].content)
        assert body == {"tipo": "egreso", "monto": 99.9, "descripcion": "Flete"}

    @pytest.mark.anyio
    async def test_non_json_success_body(self, fake_backend):
        fake_backend.respond("GET", "/productos/", httpx.Response(200, text="<html>ok</html>"))
        async with fake_backend.client() as backend:
            with pytest.raises(InvalidRemoteResponse) as exc:
                await backend.fetch_products()

        assert exc.value.detail == "Failed to fetch products"
        assert exc.value.status_code == 502

    @pytest.mark.anyio
    async def test_success_body_outside_contract(self, fake_backend):
        fake_backend.fail("POST", "/ventas/", 201, {"id": "venta-1"})
        fake_backend.fail("GET", "/caja/movimientos", 200, {"id": "m-1"})
        async with fake_backend.client() as backend:
            with pytest.raises(InvalidRemoteResponse) as exc:
                await backend.fetch_cash_movements()
            assert exc.value.detail == "Failed to fetch movements"

            with pytest.raises(InvalidRemoteResponse) as exc:
                await backend.process_sale(
                    SaleCreate(items=[], total=Decimal("0"), metodo_pago="Efectivo")
                )

        assert exc.value.detail == "Failed to process sale"
        assert exc.value.upstream_status is None
