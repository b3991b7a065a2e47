"""
Fixtures compartidas por los tests de todos los módulos.

La API externa se reemplaza por FakeBackend, un httpx.MockTransport con
estado en memoria que responde las mismas rutas que la API real.
"""
import json
import re
from uuid import uuid4

import httpx
import jwt
import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from app.dependencies.authDependencies import AuthContext, get_auth_context
from app.dependencies.backendDependencies import get_backend_client
from app.main import app
from app.modules.backend.client import BackendClient
from app.modules.pos.sessions import PosSession, sessions

API_BASE_URL = "http://api.test/api/v1"


def sample_products():
    return [
        {
            "id": "p-1",
            "nombre": "Remera Básica",
            "variantes": [
                {"id": "v-1", "sku": "REM-001-M", "talle": "M", "color": "Negro",
                 "precio_venta": 1500, "stock_actual": 3, "producto_id": "p-1",
                 "precio_costo": 900, "stock_minimo": 1},
                {"id": "v-2", "sku": "REM-001-L", "talle": "L", "color": "Negro",
                 "precio_venta": 1500, "stock_actual": 0, "producto_id": "p-1",
                 "precio_costo": 900, "stock_minimo": 1},
            ],
        },
        {
            "id": "p-2",
            "nombre": "Jean Clásico",
            "variantes": [
                {"id": "v-3", "sku": "JEA-002", "talle": "42", "color": "Azul",
                 "precio_venta": 8999.99, "stock_actual": 1, "producto_id": "p-2",
                 "precio_costo": 5000, "stock_minimo": 2},
            ],
        },
    ]


class FakeBackend:
    """API de ventas en memoria para httpx.MockTransport"""

    def __init__(self):
        self.products = sample_products()
        self.clients = [
            {"id": "c-1", "nombre": "Ana Pérez", "dni_cuit": "30123456",
             "direccion": "Av. Corrientes 1234", "ciudad": "CABA"},
            {"id": "c-2", "nombre": "Textil Norte SRL", "dni_cuit": "30-71234567-1"},
        ]
        self.cash_status = None
        self.movements = []
        self.sales = []
        self.requests = []
        # (método, path) -> (status, cuerpo) para forzar errores
        self.failures = {}
        # (método, path) -> httpx.Response de un solo uso
        self.canned = {}

    # ---- helpers ----

    def open_register(self, amount=1000):
        self.cash_status = {
            "id": "caja-1", "estado": "abierta", "monto_apertura": amount,
            "fecha_apertura": "2024-05-10T09:00:00",
        }

    def close_register(self):
        self.cash_status = dict(self.cash_status or {"id": "caja-1", "monto_apertura": 0},
                                estado="cerrada")

    def fail(self, method, path, status_code, body=None):
        self.failures[(method, path)] = (status_code, body)

    def respond(self, method, path, response):
        self.canned[(method, path)] = response

    def calls(self, method, path):
        return [r for r in self.requests if r.method == method and r.url.path == f"/api/v1{path}"]

    def transport(self):
        return httpx.MockTransport(self.handler)

    def client(self, token="test-token"):
        return BackendClient(token, base_url=API_BASE_URL, transport=self.transport())

    # ---- routing ----

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path[len("/api/v1"):]
        method = request.method

        if (method, path) in self.canned:
            return self.canned.pop((method, path))

        if (method, path) in self.failures:
            status_code, body = self.failures[(method, path)]
            return httpx.Response(status_code, json=body)

        body = json.loads(request.content) if request.content else None

        if path == "/productos/" and method == "GET":
            return httpx.Response(200, json=self.products)
        if path == "/productos/" and method == "POST":
            product = dict(body, id=f"p-{uuid4().hex[:6]}", variantes=[])
            self.products.append(product)
            return httpx.Response(201, json=product)
        if path == "/productos/variante" and method == "POST":
            variant = dict(body, id=f"v-{uuid4().hex[:6]}")
            for product in self.products:
                if product["id"] == body["producto_id"]:
                    product["variantes"].append(variant)
            return httpx.Response(201, json=variant)

        match = re.fullmatch(r"/productos/variante/([^/]+)", path)
        if match and method == "PATCH":
            for product in self.products:
                for variant in product["variantes"]:
                    if variant["id"] == match.group(1):
                        variant.update(body)
                        return httpx.Response(200, json=variant)
            return httpx.Response(404, json={"detail": "Variante no encontrada"})

        match = re.fullmatch(r"/productos/([^/]+)", path)
        if match and method == "PATCH":
            for product in self.products:
                if product["id"] == match.group(1):
                    product.update(body)
                    return httpx.Response(200, json=product)
            return httpx.Response(404, json={"detail": "Producto no encontrado"})

        if path == "/clientes/" and method == "GET":
            query = request.url.params.get("query", "").lower()
            found = [c for c in self.clients if query in c["nombre"].lower()
                     or query in (c.get("dni_cuit") or "")]
            return httpx.Response(200, json=found)
        if path == "/clientes/" and method == "POST":
            client = dict(body, id=f"c-{uuid4().hex[:6]}")
            self.clients.append(client)
            return httpx.Response(201, json=client)

        match = re.fullmatch(r"/clientes/([^/]+)", path)
        if match and method == "PATCH":
            for client in self.clients:
                if client["id"] == match.group(1):
                    client.update(body)
                    return httpx.Response(200, json=client)
            return httpx.Response(404, json={"detail": "Cliente no encontrado"})

        if path == "/ventas/hoy" and method == "GET":
            return httpx.Response(200, json=self.sales)
        if path == "/ventas/" and method == "POST":
            sale = {"id": f"venta-{len(self.sales) + 1}", "total": body["total"],
                    "metodo_pago": body["metodo_pago"]}
            self.sales.append(sale)
            for item in body["items"]:
                for product in self.products:
                    for variant in product["variantes"]:
                        if variant["id"] == item["variante_id"]:
                            variant["stock_actual"] -= item["cantidad"]
            return httpx.Response(201, json=sale)

        if path == "/caja/estado" and method == "GET":
            return httpx.Response(200, json=self.cash_status)
        if path == "/caja/apertura" and method == "POST":
            self.open_register(body["monto_apertura"])
            return httpx.Response(201, json=self.cash_status)
        if path == "/caja/cierre" and method == "POST":
            self.close_register()
            self.cash_status["monto_real_efectivo"] = body["monto_real_efectivo"]
            return httpx.Response(200, json=self.cash_status)
        if path == "/caja/movimientos" and method == "GET":
            return httpx.Response(200, json=self.movements)
        if path == "/caja/movimiento" and method == "POST":
            movement = dict(body, id=f"m-{len(self.movements) + 1}", caja_id="caja-1")
            self.movements.append(movement)
            return httpx.Response(201, json=movement)

        return httpx.Response(404, json={"detail": "Not Found"})


def make_token(user_id=None, email="cajero@tienda.test", secret="a-test-signing-secret-of-32-bytes!", **claims):
    payload = {"sub": user_id or str(uuid4()), "email": email, "aud": "authenticated"}
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


# ===== FIXTURES =====

@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def user_id():
    # Un operador nuevo por test: las sesiones POS no se comparten entre tests
    return f"user-{uuid4().hex[:8]}"


@pytest.fixture
def token_factory():
    return make_token


@pytest.fixture
def auth_headers(user_id):
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture
def fresh_session():
    return PosSession("user-unit", default_payment_method="Efectivo")


@pytest.fixture
def client(fake_backend, user_id):
    async def override_backend_client(auth_context: AuthContext = Depends(get_auth_context)):
        async with fake_backend.client(auth_context.token) as backend:
            yield backend

    app.dependency_overrides[get_backend_client] = override_backend_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_backend_client, None)
    sessions.discard(user_id)
