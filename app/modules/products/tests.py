"""
Tests del catálogo: búsqueda, margen, stock bajo y endpoints /productos.
"""
import json
from decimal import Decimal

import pytest

from app.modules.backend.schemas import Product, Variant, VariantUpdate
from app.modules.products.service import (
    filter_products, flatten_variants, is_low_stock, variant_margin
)


def variant(**overrides):
    data = {"id": "v-1", "sku": "REM-001-M", "precio_venta": Decimal("1000"),
            "stock_actual": 5, "producto_id": "p-1"}
    data.update(overrides)
    return Variant(**data)


@pytest.fixture
def catalog():
    return [
        Product(id="p-1", nombre="Remera Básica", variantes=[
            variant(id="v-1", sku="REM-001-M"),
            variant(id="v-2", sku="REM-001-L", stock_actual=0),
        ]),
        Product(id="p-2", nombre="Jean Clásico", variantes=[
            variant(id="v-3", sku="JEA-002", producto_id="p-2"),
        ]),
        Product(id="p-3", nombre="Gorra sin variantes"),
    ]


class TestCatalogHelpers:

    def test_flatten_variants_keeps_catalog_order(self, catalog):
        flat = flatten_variants(catalog)
        assert [c.variant_id for c in flat] == ["v-1", "v-2", "v-3"]
        assert flat[2].name == "Jean Clásico"
        assert flat[1].stock == 0

    @pytest.mark.parametrize("term,expected", [
        ("", ["p-1", "p-2", "p-3"]),
        ("   ", ["p-1", "p-2", "p-3"]),
        (None, ["p-1", "p-2", "p-3"]),
        ("remera", ["p-1"]),
        ("jea", ["p-2"]),
        ("001-l", ["p-1"]),
        ("zzz", []),
    ])
    def test_filter_products(self, catalog, term, expected):
        assert [p.id for p in filter_products(catalog, term)] == expected

    def test_margin(self):
        assert variant_margin(variant(precio_costo=Decimal("600"))) == Decimal("40")
        assert variant_margin(variant(precio_costo=None)) is None
        assert variant_margin(variant(precio_costo=Decimal("0"))) is None
        assert variant_margin(variant(precio_venta=Decimal("0"), precio_costo=Decimal("10"))) is None

    def test_low_stock(self):
        assert is_low_stock(variant(stock_actual=2, stock_minimo=2))
        assert not is_low_stock(variant(stock_actual=3, stock_minimo=2))
        assert is_low_stock(variant(stock_actual=0, stock_minimo=None))
        assert not is_low_stock(variant(stock_actual=1, stock_minimo=None))

    def test_variant_update_never_carries_stock(self):
        assert "stock_actual" not in VariantUpdate.model_fields


class TestProductAPI:

    def test_list_with_search(self, client, auth_headers):
        response = client.get("/productos/", params={"q": "rem"}, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        variants = data["productos"][0]["variantes"]
        assert variants[0]["margen"] == 40
        assert variants[1]["stock_bajo"] is True

    def test_low_stock(self, client, auth_headers):
        response = client.get("/productos/stock-bajo", headers=auth_headers)
        data = response.json()
        assert data["total_count"] == 2
        assert {v["variante_id"] for v in data["variantes"]} == {"v-2", "v-3"}

    def test_create_product_and_variant(self, client, auth_headers, fake_backend):
        response = client.post("/productos/", json={"nombre": "Buzo"}, headers=auth_headers)
        assert response.status_code == 201
        product_id = response.json()["id"]

        response = client.post(
            "/productos/variantes",
            json={"producto_id": product_id, "sku": "BUZ-1", "precio_venta": 12000, "stock_actual": 4},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["sku"] == "BUZ-1"

    def test_update_variant_sends_only_changes(self, client, auth_headers, fake_backend):
        response = client.patch("/productos/variantes/v-1", json={"precio_venta": 1600}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["precio_venta"] == 1600
        assert response.json()["stock_actual"] == 3

        sent = json.loads(fake_backend.calls("PATCH", "/productos/variante/v-1")[0].content)
        assert sent == {"precio_venta": 1600.0}

    def test_stock_is_ignored_on_update(self, client, auth_headers, fake_backend):
        client.patch("/productos/variantes/v-1", json={"stock_actual": 99, "color": "Blanco"}, headers=auth_headers)
        sent = json.loads(fake_backend.calls("PATCH", "/productos/variante/v-1")[0].content)
        assert sent == {"color": "Blanco"}

    def test_api_error_is_forwarded(self, client, auth_headers, fake_backend):
        fake_backend.fail("PATCH", "/productos/p-9", 404, {"detail": "Producto no encontrado"})
        response = client.patch("/productos/p-9", json={"nombre": "X"}, headers=auth_headers)
        assert response.status_code == 404
        assert response.json() == {"detail": "Producto no encontrado"}
