"""
Tests del proxy inverso.
"""
import json

import httpx
import pytest

from app.main import app
from app.modules.proxy.router import get_proxy_transport
from app.modules.proxy.service import build_target_url, filter_request_headers, forward


class Recorder:
    """Transporte que guarda el pedido recibido y responde lo configurado"""

    def __init__(self, status_code=200, **response_kwargs):
        self.requests = []
        self.status_code = status_code
        self.response_kwargs = response_kwargs or {"json": {"ok": True}}

    def __call__(self, request):
        self.requests.append(request)
        return httpx.Response(self.status_code, **self.response_kwargs)

    @property
    def transport(self):
        return httpx.MockTransport(self)


class TestHelpers:

    def test_target_url(self):
        assert build_target_url("productos/", "", "http://up/api/v1") == "http://up/api/v1/productos/"
        assert build_target_url("ventas/hoy", "a=1&b=2", "http://up/api/v1/") == "http://up/api/v1/ventas/hoy?a=1&b=2"

    def test_strips_host_and_connection(self):
        headers = [("Host", "localhost:3000"), ("Connection", "keep-alive"),
                   ("authorization", "Bearer x"), ("x-custom", "1")]
        assert filter_request_headers(headers) == [("authorization", "Bearer x"), ("x-custom", "1")]


class TestForward:

    @pytest.mark.anyio
    async def test_get_has_no_body(self):
        recorder = Recorder()
        await forward("GET", "productos/", "", [("host", "x")], b"ignored",
                      target_url="http://up/api/v1", transport=recorder.transport)

        request = recorder.requests[0]
        assert request.content == b""
        assert str(request.url) == "http://up/api/v1/productos/"

    @pytest.mark.anyio
    async def test_post_forwards_body_and_headers(self):
        recorder = Recorder(201, content=b'{"id":"venta-1"}',
                            headers={"content-type": "application/json", "x-request-id": "42"})
        result = await forward(
            "POST", "ventas/", "debug=1",
            [("authorization", "Bearer tok"), ("content-type", "application/json"), ("connection", "close")],
            b'{"items":[]}',
            target_url="http://up/api/v1", transport=recorder.transport,
        )

        request = recorder.requests[0]
        assert request.content == b'{"items":[]}'
        assert request.headers["authorization"] == "Bearer tok"
        assert request.url.params["debug"] == "1"
        assert request.headers.get("connection") != "close"
        assert request.headers["host"] == "up"

        assert result.status_code == 201
        assert result.body == b'{"id":"venta-1"}'
        assert ("x-request-id", "42") in result.headers

    @pytest.mark.anyio
    async def test_upstream_errors_pass_through(self):
        recorder = Recorder(404, json={"detail": "Not Found"})
        result = await forward("DELETE", "clientes/9", "", [], b"",
                               target_url="http://up/api/v1", transport=recorder.transport)

        assert result.status_code == 404
        assert json.loads(result.body) == {"detail": "Not Found"}

    @pytest.mark.anyio
    async def test_transport_failure_is_500(self):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        result = await forward("GET", "caja/estado", "", [], None,
                               target_url="http://up/api/v1", transport=httpx.MockTransport(refuse))

        assert result.status_code == 500
        assert result.body == b'{"error": "Connection refused"}'


class TestProxyRoute:

    @pytest.fixture
    def recorder(self):
        recorder = Recorder(
            200, content=b'[{"id":"p-1"}]', headers={"content-type": "application/json", "x-upstream": "yes"}
        )
        app.dependency_overrides[get_proxy_transport] = lambda: recorder.transport
        yield recorder
        app.dependency_overrides.pop(get_proxy_transport, None)

    def test_forwards_any_method(self, client, recorder):
        for method in ("GET", "POST", "PUT", "PATCH", "DELETE"):
            response = client.request(method, "/api/python/productos/?q=rem", headers={"Authorization": "Bearer t"})
            assert response.status_code == 200
            assert response.json() == [{"id": "p-1"}]
            assert response.headers["x-upstream"] == "yes"

        sent = recorder.requests[0]
        assert sent.url.path.endswith("/productos/")
        assert sent.url.params["q"] == "rem"
        assert sent.headers["authorization"] == "Bearer t"
        assert [r.method for r in recorder.requests] == ["GET", "POST", "PUT", "PATCH", "DELETE"]

    def test_response_headers_untouched(self, client, recorder):
        response = client.get("/api/python/productos/")
        assert "x-frame-options" not in response.headers
