"""
Tests de validadores, errores del POS y middleware
"""
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.common.exceptions import (
    ActionInProgress, RemoteRequestFailed, StockExceeded, register_exception_handlers
)
from app.common.validators import (
    calculate_cuit_check_digit, format_cuit, format_dni, validate_cuit, validate_dni,
    validate_dni_cuit,
)


class TestArgentinaValidators:

    @pytest.mark.parametrize("dni", ["1234567", "12345678", "12.345.678", " 30 123 456 "])
    def test_valid_dni(self, dni):
        assert validate_dni(dni)

    @pytest.mark.parametrize("dni", ["123456", "123456789", "01234567", "12a45678", ""])
    def test_invalid_dni(self, dni):
        assert not validate_dni(dni)

    def test_cuit_check_digit(self):
        assert calculate_cuit_check_digit("2012345678") == 6
        assert calculate_cuit_check_digit("3071234567") == 1

    @pytest.mark.parametrize("cuit", ["20-12345678-6", "20123456786", "30-71234567-1"])
    def test_valid_cuit(self, cuit):
        assert validate_cuit(cuit)

    @pytest.mark.parametrize("cuit", ["20-12345678-7", "2012345678", "20-1234567X-6"])
    def test_invalid_cuit(self, cuit):
        assert not validate_cuit(cuit)

    def test_dni_or_cuit(self):
        assert validate_dni_cuit("30123456")
        assert validate_dni_cuit("20-12345678-6")
        assert not validate_dni_cuit("20-12345678-0")

    def test_formatting(self):
        assert format_cuit("20123456786") == "20-12345678-6"
        assert format_cuit("bad") == "bad"
        assert format_dni("1234567") == "1.234.567"
        assert format_dni("12345678") == "12.345.678"


class TestExceptionHandler:

    @pytest.fixture
    def client(self):
        app = FastAPI()
        register_exception_handlers(app)

        @app.get("/stock")
        async def stock():
            raise StockExceeded(3)

        @app.get("/busy")
        async def busy():
            raise ActionInProgress()

        @app.get("/upstream/{code}")
        async def upstream(code: int):
            raise RemoteRequestFailed("detalle de la API", upstream_status=code)

        return TestClient(app)

    def test_detail_and_status(self, client):
        response = client.get("/stock")
        assert response.status_code == 409
        assert response.json() == {"detail": "Stock insuficiente. Máximo: 3"}

        assert client.get("/busy").status_code == 409

    def test_remote_errors(self, client):
        assert client.get("/upstream/400").status_code == 400
        assert client.get("/upstream/404").json() == {"detail": "detalle de la API"}
        assert client.get("/upstream/500").status_code == 502


class TestSecurityHeaders:

    def test_headers_on_own_routes(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "DENY"
