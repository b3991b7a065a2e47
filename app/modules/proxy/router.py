"""
Router del proxy inverso same-origin hacia la API.
"""
from typing import Annotated, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from app.core.config import settings
from app.modules.proxy import service

router = APIRouter(tags=["Proxy"])


def get_proxy_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transporte httpx del proxy; None usa la red."""
    return None


proxy_transport_dependency = Annotated[Optional[httpx.AsyncBaseTransport], Depends(get_proxy_transport)]


@router.api_route(
    f"{settings.PROXY_PREFIX}/{{path:path}}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def proxy(path: str, request: Request, transport: proxy_transport_dependency):
    """Reenviar cualquier pedido bajo el prefijo del proxy a la API."""
    result = await service.forward(
        method=request.method,
        path=path,
        query=request.url.query,
        headers=[(k.decode("latin-1"), v.decode("latin-1")) for k, v in request.headers.raw],
        body=await request.body(),
        transport=transport,
    )

    response = Response(content=result.body, status_code=result.status_code)
    for key, value in result.headers:
        response.headers.append(key, value)
    return response
