"""
Proxy inverso hacia la API: reenvía el pedido tal cual y devuelve la
respuesta sin transformar.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

# No se reenvían al destino; accept-encoding lo pone httpx con lo que sabe descomprimir
STRIPPED_REQUEST_HEADERS = {"host", "connection", "accept-encoding"}
# El cuerpo se devuelve completo y ya descomprimido
STRIPPED_RESPONSE_HEADERS = {"transfer-encoding", "content-length", "content-encoding"}
BODYLESS_METHODS = {"GET", "HEAD"}


@dataclass
class ProxyResult:
    status_code: int
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: bytes = b""


def build_target_url(path: str, query: str = "", target_url: Optional[str] = None) -> str:
    base = (target_url or settings.PROXY_TARGET_URL).rstrip("/")
    url = f"{base}/{path.lstrip('/')}"
    if query:
        url = f"{url}?{query}"
    return url


def filter_request_headers(headers: Sequence[Tuple[str, str]]) -> List[Tuple[str, str]]:
    return [(k, v) for k, v in headers if k.lower() not in STRIPPED_REQUEST_HEADERS]


async def forward(method: str, path: str, query: str,
                  headers: Sequence[Tuple[str, str]], body: Optional[bytes],
                  target_url: Optional[str] = None,
                  transport: Optional[httpx.AsyncBaseTransport] = None) -> ProxyResult:
    """
    Reenviar un pedido al destino configurado.

    GET y HEAD nunca llevan cuerpo. Una falla de transporte se devuelve como
    500 con {"error": mensaje}.
    """
    method = method.upper()
    url = build_target_url(path, query, target_url)
    content = None if method in BODYLESS_METHODS else (body or b"")

    logger.info(f"[Proxy] Forwarding {method} to: {url}")

    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT, transport=transport) as client:
            response = await client.request(
                method, url, headers=filter_request_headers(headers), content=content
            )
    except httpx.HTTPError as e:
        logger.error(f"[Proxy] Error forwarding {method} {url}: {e}")
        return ProxyResult(
            status_code=500,
            headers=[("content-type", "application/json")],
            body=json.dumps({"error": str(e)}).encode(),
        )

    logger.info(f"[Proxy] Response status: {response.status_code}")

    return ProxyResult(
        status_code=response.status_code,
        headers=[
            (k, v) for k, v in response.headers.multi_items()
            if k.lower() not in STRIPPED_RESPONSE_HEADERS
        ],
        body=response.content,
    )
