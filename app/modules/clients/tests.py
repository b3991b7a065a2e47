"""
Tests del módulo de Clientes
"""
import json

import pytest
from pydantic import ValidationError

from app.modules.backend.schemas import Client
from app.modules.clients.schemas import ClientCreate, ClientUpdate
from app.modules.clients.service import format_address


class TestClientSchemas:

    def test_blank_fields_become_null(self):
        data = ClientCreate(nombre="  Ana  ", email="", telefono="   ", dni_cuit="", ciudad="Rosario")
        assert data.nombre == "Ana"
        assert data.email is None
        assert data.telefono is None
        assert data.dni_cuit is None
        assert data.ciudad == "Rosario"

    def test_name_required(self):
        with pytest.raises(ValidationError):
            ClientCreate(nombre="   ")

    @pytest.mark.parametrize("document,expected", [
        ("30123456", "30.123.456"),
        ("30.123.456", "30.123.456"),
        ("20123456786", "20-12345678-6"),
        ("30-71234567-1", "30-71234567-1"),
    ])
    def test_valid_documents_are_formatted(self, document, expected):
        assert ClientCreate(nombre="X", dni_cuit=document).dni_cuit == expected

    @pytest.mark.parametrize("document", ["123", "20-12345678-5", "abcdefgh", "012345678"])
    def test_invalid_documents(self, document):
        with pytest.raises(ValidationError):
            ClientCreate(nombre="X", dni_cuit=document)

    def test_update_keeps_only_sent_fields(self):
        data = ClientUpdate(telefono="", ciudad="Córdoba")
        assert data.model_dump(exclude_unset=True) == {"telefono": None, "ciudad": "Córdoba"}


class TestFormatAddress:

    @pytest.mark.parametrize("direccion,ciudad,expected", [
        ("Av. Corrientes 1234", "CABA", "Av. Corrientes 1234, CABA"),
        (None, "CABA", "CABA"),
        ("San Martín 10", "", "San Martín 10"),
        (None, None, None),
    ])
    def test_format_address(self, direccion, ciudad, expected):
        client = Client(id="c", nombre="X", direccion=direccion, ciudad=ciudad)
        assert format_address(client) == expected


class TestClientAPI:

    def test_search(self, client, auth_headers, fake_backend):
        response = client.get("/clientes/", params={"query": "ana"}, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["clientes"][0]["direccion_completa"] == "Av. Corrientes 1234, CABA"
        assert fake_backend.requests[0].url.params["query"] == "ana"

    def test_list_without_query(self, client, auth_headers, fake_backend):
        response = client.get("/clientes/", headers=auth_headers)
        assert response.json()["total"] == 2
        assert "query" not in fake_backend.requests[0].url.params

    def test_create_sends_nulls(self, client, auth_headers, fake_backend):
        response = client.post(
            "/clientes/",
            json={"nombre": "Luis Gómez", "dni_cuit": "20-12345678-6", "email": "", "direccion": ""},
            headers=auth_headers,
        )
        assert response.status_code == 201

        sent = json.loads(fake_backend.calls("POST", "/clientes/")[0].content)
        assert sent["email"] is None
        assert sent["direccion"] is None
        assert sent["dni_cuit"] == "20-12345678-6"

    def test_create_rejects_bad_cuit(self, client, auth_headers, fake_backend):
        response = client.post("/clientes/", json={"nombre": "X", "dni_cuit": "20-12345678-0"}, headers=auth_headers)
        assert response.status_code == 422
        assert fake_backend.requests == []

    def test_update(self, client, auth_headers, fake_backend):
        response = client.patch("/clientes/c-1", json={"telefono": "11 5555-0000"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["telefono"] == "11 5555-0000"

        sent = json.loads(fake_backend.calls("PATCH", "/clientes/c-1")[0].content)
        assert sent == {"telefono": "11 5555-0000"}
