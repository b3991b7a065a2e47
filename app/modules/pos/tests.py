"""
Tests para el módulo POS

Cubren:
- Carrito: stock, topes, cantidades, totales y armado de la venta
- Escaneo por SKU/ID
- Caja: saldo estimado y validación de movimientos
- Servicios contra la API simulada (venta, apertura/cierre, movimientos)
- Endpoints /pos/venta y /pos/caja
"""

import json
from decimal import Decimal
from itertools import permutations

import httpx
import pytest

from app.common.exceptions import (
    ActionInProgress, ConfirmationRequired, EmptyCart, InvalidAmount,
    InvalidDescription, InvalidMovementType, NoOpenRegister, OutOfStock,
    RegisterAlreadyOpen, RemoteRequestFailed, ScanNotFound, StockExceeded,
)
from app.modules.backend.schemas import (
    CashMovement, CashStatus, MovementType, PaymentMethod, RegisterState
)
from app.modules.pos.cart import (
    Cart, CartLine, ScanCandidate, build_sale_request, compute_totals, resolve_scan
)
from app.modules.pos.ledger import (
    compute_estimated_balance, parse_amount, summarize_movements, validate_movement
)
from app.modules.pos.services import CashRegisterService, CheckoutService
from app.modules.pos.sessions import PosSession, SessionRegistry


def candidate(variant_id="A", price="50", stock=3, sku=None, name="Remera"):
    return ScanCandidate(
        variant_id=variant_id,
        product_id=f"prod-{variant_id}",
        name=name,
        sku=sku,
        talle=None,
        color=None,
        price=Decimal(price),
        stock=stock,
    )


def snapshot(cart):
    return [(line.variant_id, line.quantity, line.unit_price, line.stock_ceiling) for line in cart]


def open_status(amount="1000"):
    return CashStatus(id="caja-1", estado=RegisterState.OPEN, monto_apertura=Decimal(amount))


def movement(tipo, monto, n=1):
    return CashMovement(id=f"m-{n}", tipo=tipo, monto=Decimal(str(monto)), descripcion="mov")


# ===== CART =====

class TestCart:
    """Reglas del carrito"""

    def test_add_out_of_stock_variant_fails_and_cart_unchanged(self):
        cart = Cart()
        cart.add_variant(candidate("B", stock=2))
        before = snapshot(cart)

        with pytest.raises(OutOfStock) as exc:
            cart.add_variant(candidate("A", stock=0))

        assert exc.value.detail == "Producto sin stock disponible."
        assert snapshot(cart) == before

    def test_add_negative_stock_variant_fails(self):
        with pytest.raises(OutOfStock):
            Cart().add_variant(candidate("A", stock=-1))

    @pytest.mark.parametrize("ceiling", [1, 2, 3, 5])
    def test_readding_respects_captured_ceiling(self, ceiling):
        cart = Cart()
        variant = candidate("A", stock=ceiling)
        cart.add_variant(variant)

        for expected in range(2, ceiling + 1):
            cart.add_variant(variant)
            assert cart.get("A").quantity == expected

        before = snapshot(cart)
        with pytest.raises(StockExceeded) as exc:
            cart.add_variant(variant)

        assert exc.value.stock_ceiling == ceiling
        assert exc.value.detail == f"Stock insuficiente. Máximo: {ceiling}"
        assert snapshot(cart) == before

    def test_line_keeps_price_and_ceiling_captured_when_added(self):
        cart = Cart()
        cart.add_variant(candidate("A", price="50", stock=2))
        cart.add_variant(candidate("A", price="80", stock=10))

        line = cart.get("A")
        assert line.quantity == 2
        assert line.unit_price == Decimal("50")
        assert line.stock_ceiling == 2

    def test_one_line_per_variant_in_insertion_order(self):
        cart = Cart()
        cart.add_variant(candidate("A"))
        cart.add_variant(candidate("B"))
        cart.add_variant(candidate("A"))

        assert [line.variant_id for line in cart] == ["A", "B"]
        assert cart.get("A").quantity == 2

    @pytest.mark.parametrize("delta", [-1, -2, -10])
    def test_adjust_to_zero_or_less_removes_line(self, delta):
        cart = Cart()
        cart.add_variant(candidate("A"))
        cart.add_variant(candidate("B"))

        cart.adjust_quantity("A", delta)

        assert cart.get("A") is None
        assert all(line.variant_id != "A" for line in cart)
        assert len(cart) == 1

    def test_adjust_above_ceiling_fails_and_cart_unchanged(self):
        cart = Cart()
        cart.add_variant(candidate("A", stock=3))
        before = snapshot(cart)

        with pytest.raises(StockExceeded):
            cart.adjust_quantity("A", 3)

        assert snapshot(cart) == before

    def test_adjust_within_bounds(self):
        cart = Cart()
        cart.add_variant(candidate("A", stock=5))
        cart.adjust_quantity("A", 3)
        cart.adjust_quantity("A", -2)

        assert cart.get("A").quantity == 2

    def test_adjust_unknown_variant_is_noop(self):
        cart = Cart()
        cart.add_variant(candidate("A"))
        before = snapshot(cart)

        cart.adjust_quantity("missing", 1)

        assert snapshot(cart) == before

    def test_remove_and_clear(self):
        cart = Cart()
        cart.add_variant(candidate("A"))
        cart.add_variant(candidate("B"))

        cart.remove_line("A")
        assert [line.variant_id for line in cart] == ["B"]

        cart.clear()
        assert len(cart) == 0

    def test_full_stock_scenario(self):
        """Variante a 50 con stock 3: tres altas, la cuarta falla y el total queda en 150."""
        cart = Cart()
        variant = candidate("A", price="50", stock=3)
        for _ in range(3):
            cart.add_variant(variant)

        with pytest.raises(StockExceeded):
            cart.adjust_quantity("A", 1)
        with pytest.raises(StockExceeded):
            cart.add_variant(variant)

        assert cart.get("A").quantity == 3
        assert compute_totals(cart).total_amount == Decimal("150")
        assert compute_totals(cart).total_items == 3


class TestTotals:

    def test_totals_are_order_independent(self):
        lines = [
            CartLine("A", "p", "A", None, None, None, Decimal("10.50"), 2, 5),
            CartLine("B", "p", "B", None, None, None, Decimal("0.99"), 7, 9),
            CartLine("C", "p", "C", None, None, None, Decimal("1999.90"), 1, 1),
        ]
        expected = compute_totals(Cart(lines))

        for order in permutations(lines):
            totals = compute_totals(Cart(order))
            assert totals.total_items == expected.total_items == 10
            assert totals.total_amount == expected.total_amount == Decimal("2027.83")

    def test_empty_cart_totals(self):
        totals = compute_totals(Cart())
        assert totals.total_items == 0
        assert totals.total_amount == Decimal("0")


class TestBuildSaleRequest:

    def test_empty_cart_fails(self):
        with pytest.raises(EmptyCart):
            build_sale_request(Cart(), None, "Efectivo")

    def test_one_item_per_line_with_captured_price(self):
        cart = Cart()
        cart.add_variant(candidate("A", price="50", stock=3))
        cart.add_variant(candidate("A", price="50", stock=3))
        cart.add_variant(candidate("B", price="12.30", stock=1))

        sale = build_sale_request(cart, "c-1", "Tarjeta")

        assert [(i.variante_id, i.cantidad, i.precio_unitario) for i in sale.items] == [
            ("A", 2, Decimal("50")),
            ("B", 1, Decimal("12.30")),
        ]
        assert sale.total == Decimal("112.30")
        assert sale.cliente_id == "c-1"
        assert sale.metodo_pago == "Tarjeta"

    def test_walk_in_sale_has_null_client(self):
        cart = Cart()
        cart.add_variant(candidate("A"))

        sale = build_sale_request(cart, "", "Efectivo")

        assert sale.cliente_id is None
        assert sale.model_dump(mode="json")["cliente_id"] is None


# ===== SCAN =====

class TestResolveScan:

    catalog = [
        candidate("v-1", sku="ABC-001"),
        candidate("v-2", sku="XYZ-9"),
        candidate("v-3", sku=None),
    ]

    def test_sku_match_is_case_insensitive(self):
        assert resolve_scan("abc-001", self.catalog).variant_id == "v-1"
        assert resolve_scan("  ABC-001 ", self.catalog).variant_id == "v-1"

    def test_falls_back_to_exact_id(self):
        assert resolve_scan("v-3", self.catalog).variant_id == "v-3"

    def test_id_match_is_exact(self):
        with pytest.raises(ScanNotFound):
            resolve_scan("V-3", self.catalog)

    def test_no_match_fails(self):
        with pytest.raises(ScanNotFound) as exc:
            resolve_scan("zzz", self.catalog)
        assert exc.value.detail == "No se encontró producto con SKU/ID: zzz"

    def test_no_partial_matches(self):
        with pytest.raises(ScanNotFound):
            resolve_scan("ABC", self.catalog)

    def test_blank_code_fails(self):
        with pytest.raises(ScanNotFound):
            resolve_scan("   ", self.catalog)

    def test_ambiguous_sku_fails(self):
        catalog = [candidate("v-1", sku="DUP"), candidate("v-2", sku="dup")]
        with pytest.raises(ScanNotFound):
            resolve_scan("dup", catalog)


# ===== LEDGER =====

class TestLedger:

    def test_estimated_balance_scenario(self):
        movements = [
            movement(MovementType.INCOME, 500, 1),
            movement(MovementType.EXPENSE, 200, 2),
            movement(MovementType.INCOME, 100, 3),
        ]
        assert compute_estimated_balance(open_status("1000"), movements) == Decimal("1400")

    @pytest.mark.parametrize("movements", [
        [],
        [movement(MovementType.INCOME, 500)],
        [movement(MovementType.EXPENSE, 10), movement(MovementType.INCOME, 5, 2)],
    ])
    def test_closed_register_has_no_balance(self, movements):
        closed = CashStatus(id="caja-1", estado=RegisterState.CLOSED, monto_apertura=Decimal("1000"))
        with pytest.raises(NoOpenRegister):
            compute_estimated_balance(closed, movements)
        with pytest.raises(NoOpenRegister):
            compute_estimated_balance(None, movements)

    def test_summary(self):
        summary = summarize_movements([
            movement(MovementType.INCOME, "10.10", 1),
            movement(MovementType.EXPENSE, "0.10", 2),
            movement(MovementType.INCOME, "5", 3),
        ])
        assert summary.total_income == Decimal("15.10")
        assert summary.total_expense == Decimal("0.10")
        assert summary.count == 3

    def test_valid_movement_is_trimmed(self):
        data = validate_movement("egreso", "250.50", "  Compra de bolsas  ")
        assert data.tipo == MovementType.EXPENSE
        assert data.monto == Decimal("250.50")
        assert data.descripcion == "Compra de bolsas"

    @pytest.mark.parametrize("monto", [0, "0", -5, "-0.01", "abc", "", None, True])
    def test_invalid_amounts(self, monto):
        with pytest.raises(InvalidAmount):
            validate_movement("ingreso", monto, "Cambio")

    @pytest.mark.parametrize("descripcion", ["", "   ", None])
    def test_blank_description(self, descripcion):
        with pytest.raises(InvalidDescription):
            validate_movement("ingreso", 10, descripcion)

    def test_unknown_type(self):
        with pytest.raises(InvalidMovementType):
            validate_movement("retiro", 10, "x")

    def test_parse_amount_rejects_non_finite(self):
        with pytest.raises(InvalidAmount):
            parse_amount("NaN")
        with pytest.raises(InvalidAmount):
            parse_amount("Infinity")


# ===== SESSIONS =====

class TestSessions:

    def test_registry_returns_same_session_per_user(self):
        registry = SessionRegistry()
        first = registry.get("u-1")
        assert registry.get("u-1") is first
        assert registry.get("u-2") is not first
        assert len(registry) == 2

        registry.discard("u-1")
        assert registry.get("u-1") is not first

    def test_sale_accepted_resets_sale_state(self):
        session = PosSession("u-1", default_payment_method="Efectivo")
        session.cart.add_variant(candidate("A"))
        session.selected_client_id = "c-1"
        session.payment_method = "QR"
        session.scan_buffer = "ABC"

        session.on_sale_accepted()

        assert len(session.cart) == 0
        assert session.selected_client_id is None
        assert session.payment_method == "Efectivo"
        assert session.scan_buffer == ""

    @pytest.mark.anyio
    async def test_one_action_at_a_time(self):
        session = PosSession("u-1")
        async with session.action():
            assert session.busy
            with pytest.raises(ActionInProgress):
                session.ensure_idle()
            with pytest.raises(ActionInProgress):
                async with session.action():
                    pass
        assert not session.busy

    @pytest.mark.anyio
    async def test_guard_released_after_error(self):
        session = PosSession("u-1")
        with pytest.raises(EmptyCart):
            async with session.action():
                raise EmptyCart()
        assert not session.busy


# ===== SERVICES =====

class TestCheckoutService:

    @pytest.mark.anyio
    async def test_scan_loads_catalog_and_adds(self, fake_backend, fresh_session):
        async with fake_backend.client() as backend:
            service = CheckoutService(fresh_session, backend)
            await service.scan("rem-001-m")
            await service.scan("REM-001-M")

        line = fresh_session.cart.get("v-1")
        assert line.quantity == 2
        assert line.unit_price == Decimal("1500")
        assert line.name == "Remera Básica"
        assert fresh_session.scan_buffer == ""
        assert len(fake_backend.calls("GET", "/productos/")) == 1

    @pytest.mark.anyio
    async def test_scan_miss_clears_buffer_and_keeps_cart(self, fake_backend, fresh_session):
        async with fake_backend.client() as backend:
            service = CheckoutService(fresh_session, backend)
            await service.scan("JEA-002")
            with pytest.raises(ScanNotFound):
                await service.scan("zzz")

        assert fresh_session.scan_buffer == ""
        assert snapshot(fresh_session.cart) == [("v-3", 1, Decimal("8999.99"), 1)]

    @pytest.mark.anyio
    async def test_add_unknown_variant(self, fake_backend, fresh_session):
        async with fake_backend.client() as backend:
            service = CheckoutService(fresh_session, backend)
            await service.load_catalog()
            with pytest.raises(ScanNotFound):
                await service.add_variant("nope")

    @pytest.mark.anyio
    async def test_checkout_success_resets_session_and_reloads_stock(self, fake_backend, fresh_session):
        async with fake_backend.client() as backend:
            service = CheckoutService(fresh_session, backend)
            await service.scan("REM-001-M")
            await service.scan("REM-001-M")
            service.select_client("c-1")
            service.set_payment_method(PaymentMethod.CARD)

            sale = await service.checkout()

        assert sale.id == "venta-1"
        assert sale.total == Decimal("3000")

        sent = fake_backend.sales[0]
        assert sent["metodo_pago"] == "Tarjeta"
        request = fake_backend.calls("POST", "/ventas/")[0]
        assert request.headers["Authorization"] == "Bearer test-token"

        assert len(fresh_session.cart) == 0
        assert fresh_session.selected_client_id is None
        assert fresh_session.payment_method == "Efectivo"
        # Stock recargado tras la venta: quedan 3 - 2
        stock = {c.variant_id: c.stock for c in fresh_session.catalog}
        assert stock["v-1"] == 1

    @pytest.mark.anyio
    async def test_rejected_sale_keeps_cart(self, fake_backend, fresh_session):
        fake_backend.fail("POST", "/ventas/", 400, {"detail": "Stock insuficiente para REM-001-M"})
        async with fake_backend.client() as backend:
            service = CheckoutService(fresh_session, backend)
            await service.scan("REM-001-M")
            service.select_client("c-1")
            before = snapshot(fresh_session.cart)

            with pytest.raises(RemoteRequestFailed) as exc:
                await service.checkout()

        assert exc.value.detail == "Stock insuficiente para REM-001-M"
        assert exc.value.status_code == 400
        assert snapshot(fresh_session.cart) == before
        assert fresh_session.selected_client_id == "c-1"
        assert not fresh_session.busy

    @pytest.mark.anyio
    async def test_accepted_sale_with_unreadable_body_clears_session(self, fake_backend, fresh_session):
        fake_backend.fail("POST", "/ventas/", 201, {"id": "venta-1"})
        async with fake_backend.client() as backend:
            service = CheckoutService(fresh_session, backend)
            await service.scan("REM-001-M")
            service.select_client("c-1")

            sale = await service.checkout()

        assert sale is None
        assert len(fake_backend.calls("POST", "/ventas/")) == 1
        assert len(fresh_session.cart) == 0
        assert fresh_session.selected_client_id is None
        assert len(fake_backend.calls("GET", "/productos/")) == 2
        assert not fresh_session.busy

    @pytest.mark.anyio
    async def test_accepted_sale_with_non_json_body_clears_session(self, fake_backend, fresh_session):
        async with fake_backend.client() as backend:
            service = CheckoutService(fresh_session, backend)
            await service.scan("JEA-002")
            fake_backend.respond("POST", "/ventas/", httpx.Response(201, text="OK"))

            assert await service.checkout() is None

        assert len(fresh_session.cart) == 0

    @pytest.mark.anyio
    async def test_empty_cart_never_calls_api(self, fake_backend, fresh_session):
        async with fake_backend.client() as backend:
            with pytest.raises(EmptyCart):
                await CheckoutService(fresh_session, backend).checkout()

        assert fake_backend.calls("POST", "/ventas/") == []

    @pytest.mark.anyio
    async def test_mutations_rejected_while_busy(self, fake_backend, fresh_session):
        async with fake_backend.client() as backend:
            service = CheckoutService(fresh_session, backend)
            await service.scan("REM-001-M")

            async with fresh_session.action():
                with pytest.raises(ActionInProgress):
                    service.adjust_quantity("v-1", 1)
                with pytest.raises(ActionInProgress):
                    await service.scan("REM-001-M")

        assert fresh_session.cart.get("v-1").quantity == 1


class TestCashRegisterService:

    @pytest.mark.anyio
    async def test_movement_rejected_when_closed_without_posting(self, fake_backend, fresh_session):
        fake_backend.close_register()
        async with fake_backend.client() as backend:
            service = CashRegisterService(fresh_session, backend, "user-unit")
            with pytest.raises(NoOpenRegister):
                await service.record_movement("ingreso", 100, "Cambio")

        assert fake_backend.calls("POST", "/caja/movimiento") == []

    @pytest.mark.anyio
    async def test_invalid_movement_never_calls_api(self, fake_backend, fresh_session):
        fake_backend.open_register()
        async with fake_backend.client() as backend:
            service = CashRegisterService(fresh_session, backend, "user-unit")
            with pytest.raises(InvalidAmount):
                await service.record_movement("ingreso", "-3", "Cambio")

        assert fake_backend.requests == []

    @pytest.mark.anyio
    async def test_movement_uses_cached_register_status(self, fake_backend, fresh_session):
        fake_backend.open_register()
        async with fake_backend.client() as backend:
            service = CashRegisterService(fresh_session, backend, "user-unit")
            await service.record_movement("ingreso", "500", "Cambio inicial")
            created = await service.record_movement("egreso", 200, " Flete ")

        assert created.tipo == MovementType.EXPENSE
        assert created.descripcion == "Flete"
        assert len(fake_backend.calls("GET", "/caja/estado")) == 1
        assert len(fake_backend.movements) == 2

    @pytest.mark.anyio
    async def test_open_attaches_user(self, fake_backend, fresh_session):
        async with fake_backend.client() as backend:
            service = CashRegisterService(fresh_session, backend, "user-unit")
            status = await service.open_register("1000")

        assert status.is_open
        assert fresh_session.register_status.is_open
        request = fake_backend.calls("POST", "/caja/apertura")[0]
        assert b'"usuario_id":"user-unit"' in request.content.replace(b" ", b"")

    @pytest.mark.anyio
    async def test_open_rejected_when_already_open(self, fake_backend, fresh_session):
        fake_backend.open_register(1000)
        async with fake_backend.client() as backend:
            service = CashRegisterService(fresh_session, backend, "user-unit")
            with pytest.raises(RegisterAlreadyOpen):
                await service.open_register(10)

        assert fake_backend.calls("POST", "/caja/apertura") == []
        assert fake_backend.cash_status["monto_apertura"] == 1000

    @pytest.mark.anyio
    async def test_open_uses_cached_status(self, fake_backend, fresh_session):
        fresh_session.remember_register(CashStatus(id="caja-1", estado=RegisterState.OPEN))
        async with fake_backend.client() as backend:
            with pytest.raises(RegisterAlreadyOpen):
                await CashRegisterService(fresh_session, backend, "user-unit").open_register(10)

        assert fake_backend.requests == []

    @pytest.mark.anyio
    async def test_close_rejected_when_closed(self, fake_backend, fresh_session):
        fake_backend.close_register()
        async with fake_backend.client() as backend:
            service = CashRegisterService(fresh_session, backend, "user-unit")
            with pytest.raises(NoOpenRegister):
                await service.close_register(100, None, confirmed=True)

        assert fake_backend.calls("POST", "/caja/cierre") == []

    @pytest.mark.anyio
    async def test_close_rejected_without_register(self, fake_backend, fresh_session):
        async with fake_backend.client() as backend:
            with pytest.raises(NoOpenRegister):
                await CashRegisterService(fresh_session, backend, "u").close_register(100, None, True)

        assert len(fake_backend.calls("GET", "/caja/estado")) == 1
        assert fake_backend.calls("POST", "/caja/cierre") == []

    @pytest.mark.anyio
    async def test_open_rejects_negative(self, fake_backend, fresh_session):
        async with fake_backend.client() as backend:
            with pytest.raises(InvalidAmount):
                await CashRegisterService(fresh_session, backend, "u").open_register(-1)
        assert fake_backend.requests == []

    @pytest.mark.anyio
    async def test_close_requires_confirmation(self, fake_backend, fresh_session):
        fake_backend.open_register()
        async with fake_backend.client() as backend:
            service = CashRegisterService(fresh_session, backend, "user-unit")
            with pytest.raises(ConfirmationRequired):
                await service.close_register(900, None, confirmed=False)
            assert fake_backend.calls("POST", "/caja/cierre") == []

            status = await service.close_register("900", "  ", confirmed=True)

        assert status.estado == RegisterState.CLOSED
        assert not fresh_session.register_status.is_open

    @pytest.mark.anyio
    async def test_overview_open_register(self, fake_backend, fresh_session):
        fake_backend.open_register(1000)
        fake_backend.movements = [
            {"id": "m-1", "tipo": "ingreso", "monto": 500, "descripcion": "a"},
            {"id": "m-2", "tipo": "egreso", "monto": 200, "descripcion": "b"},
            {"id": "m-3", "tipo": "ingreso", "monto": 100, "descripcion": "c"},
        ]
        async with fake_backend.client() as backend:
            overview = await CashRegisterService(fresh_session, backend, "u").overview()

        assert overview.abierta
        assert overview.saldo_estimado == Decimal("1400")
        assert overview.resumen.cantidad == 3
        assert len(overview.movimientos) == 3

    @pytest.mark.anyio
    async def test_overview_without_register(self, fake_backend, fresh_session):
        async with fake_backend.client() as backend:
            overview = await CashRegisterService(fresh_session, backend, "u").overview()

        assert not overview.abierta
        assert overview.estado is None
        assert overview.saldo_estimado is None
        assert fake_backend.calls("GET", "/caja/movimientos") == []


# ===== API =====

class TestSaleAPI:

    def test_requires_authentication(self, client):
        response = client.get("/pos/venta")
        assert response.status_code == 401
        assert response.json()["detail"] == "Usuario no autenticado"

    def test_scan_flow(self, client, auth_headers):
        response = client.post("/pos/venta/escanear", json={"codigo": "rem-001-m"}, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total_items"] == 1
        assert data["total_amount"] == 1500
        assert data["items"][0]["variant_id"] == "v-1"
        assert data["metodo_pago"] == "Efectivo"
        assert data["catalogo_cargado"] is True

    def test_scan_errors(self, client, auth_headers):
        response = client.post("/pos/venta/escanear", json={"codigo": "zzz"}, headers=auth_headers)
        assert response.status_code == 404
        assert response.json() == {"detail": "No se encontró producto con SKU/ID: zzz"}

        response = client.post("/pos/venta/escanear", json={"codigo": "REM-001-L"}, headers=auth_headers)
        assert response.status_code == 409
        assert response.json() == {"detail": "Producto sin stock disponible."}

    def test_quantity_and_removal(self, client, auth_headers):
        client.post("/pos/venta/escanear", json={"codigo": "REM-001-M"}, headers=auth_headers)

        response = client.patch("/pos/venta/items/v-1", json={"delta": 5}, headers=auth_headers)
        assert response.status_code == 409
        assert response.json()["detail"] == "Stock insuficiente. Máximo: 3"

        response = client.patch("/pos/venta/items/v-1", json={"delta": 2}, headers=auth_headers)
        assert response.json()["items"][0]["quantity"] == 3

        response = client.delete("/pos/venta/items/v-1", headers=auth_headers)
        assert response.json()["items"] == []

    def test_add_from_list(self, client, auth_headers):
        response = client.post("/pos/venta/items/v-3", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["items"][0]["name"] == "Jean Clásico"

        response = client.post("/pos/venta/items/v-3", headers=auth_headers)
        assert response.status_code == 409
        assert response.json() == {"detail": "Stock insuficiente. Máximo: 1"}

        response = client.post("/pos/venta/items/v-404", headers=auth_headers)
        assert response.status_code == 404

    def test_client_and_payment_selection(self, client, auth_headers):
        response = client.put("/pos/venta/cliente", json={"cliente_id": "c-1"}, headers=auth_headers)
        assert response.json()["cliente_id"] == "c-1"

        response = client.put("/pos/venta/pago", json={"metodo_pago": "QR"}, headers=auth_headers)
        assert response.json()["metodo_pago"] == "QR"

        response = client.put("/pos/venta/pago", json={"metodo_pago": "Cheque"}, headers=auth_headers)
        assert response.status_code == 422

    def test_confirm_sale(self, client, auth_headers, fake_backend):
        client.post("/pos/venta/escanear", json={"codigo": "JEA-002"}, headers=auth_headers)

        response = client.post("/pos/venta/confirmar", headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["mensaje"] == "¡Venta registrada correctamente!"
        assert data["venta"]["id"] == "venta-1"
        assert data["carrito"]["items"] == []
        sent = json.loads(fake_backend.calls("POST", "/ventas/")[0].content)
        assert sent["cliente_id"] is None
        assert sent["items"] == [{"variante_id": "v-3", "cantidad": 1, "precio_unitario": 8999.99}]

    def test_confirm_sale_with_unreadable_response(self, client, auth_headers, fake_backend):
        client.post("/pos/venta/escanear", json={"codigo": "JEA-002"}, headers=auth_headers)
        fake_backend.fail("POST", "/ventas/", 201, {"id": "venta-1"})

        response = client.post("/pos/venta/confirmar", headers=auth_headers)

        assert response.status_code == 201
        assert response.json()["venta"] is None
        assert response.json()["carrito"]["items"] == []

        # Reintentar no duplica la venta: el carrito ya está vacío
        response = client.post("/pos/venta/confirmar", headers=auth_headers)
        assert response.status_code == 400
        assert len(fake_backend.calls("POST", "/ventas/")) == 1

    def test_confirm_empty_cart(self, client, auth_headers):
        response = client.post("/pos/venta/confirmar", headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"detail": "El carrito está vacío"}

    def test_sessions_are_per_operator(self, client, auth_headers, token_factory):
        client.post("/pos/venta/escanear", json={"codigo": "REM-001-M"}, headers=auth_headers)

        other = {"Authorization": f"Bearer {token_factory('other-operator')}"}
        response = client.get("/pos/venta", headers=other)
        assert response.json()["items"] == []


class TestCashAPI:

    def test_closed_register_overview(self, client, auth_headers):
        response = client.get("/pos/caja", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["abierta"] is False

    def test_open_move_and_close(self, client, auth_headers, fake_backend, user_id):
        response = client.post("/pos/caja/apertura", json={"monto_apertura": 1000}, headers=auth_headers)
        assert response.status_code == 201
        assert response.json()["estado"] == "abierta"

        response = client.post(
            "/pos/caja/movimientos",
            json={"tipo": "ingreso", "monto": 500, "descripcion": "Cambio"},
            headers=auth_headers,
        )
        assert response.status_code == 201

        response = client.get("/pos/caja", headers=auth_headers)
        assert response.json()["saldo_estimado"] == 1500

        response = client.post("/pos/caja/cierre", json={"monto_real_efectivo": 1500}, headers=auth_headers)
        assert response.status_code == 400

        response = client.post(
            "/pos/caja/cierre",
            json={"monto_real_efectivo": 1500, "confirmar": True},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["estado"] == "cerrada"

    def test_movement_when_closed(self, client, auth_headers, fake_backend):
        response = client.post(
            "/pos/caja/movimientos",
            json={"tipo": "egreso", "monto": "50", "descripcion": "Flete"},
            headers=auth_headers,
        )
        assert response.status_code == 409
        assert fake_backend.movements == []

    def test_register_transitions_are_checked(self, client, auth_headers, fake_backend):
        response = client.post(
            "/pos/caja/cierre", json={"monto_real_efectivo": 0, "confirmar": True}, headers=auth_headers
        )
        assert response.status_code == 409
        assert fake_backend.calls("POST", "/caja/cierre") == []

        assert client.post("/pos/caja/apertura", json={"monto_apertura": 500}, headers=auth_headers).status_code == 201
        response = client.post("/pos/caja/apertura", json={"monto_apertura": 500}, headers=auth_headers)
        assert response.status_code == 409
        assert response.json() == {"detail": "Ya hay una caja abierta"}
        assert len(fake_backend.calls("POST", "/caja/apertura")) == 1

    def test_invalid_movement(self, client, auth_headers):
        response = client.post(
            "/pos/caja/movimientos",
            json={"tipo": "ingreso", "monto": "abc", "descripcion": "x"},
            headers=auth_headers,
        )
        assert response.status_code == 422
        assert response.json() == {"detail": "El monto debe ser un número"}
