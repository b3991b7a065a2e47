"""
Cliente tipado de la API de ventas/caja/catálogo/clientes.

Cada llamada lleva `Authorization: Bearer <token>` y
`Content-Type: application/json`. Las respuestas no-2xx se convierten en
RemoteRequestFailed con el campo `detail` del cuerpo tal cual lo envía la API;
un 2xx con un cuerpo que no respeta el contrato, en InvalidRemoteResponse.
"""

import json
import logging
from typing import Any, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from app.common.exceptions import InvalidRemoteResponse, RemoteRequestFailed
from app.core.config import settings
from app.modules.backend.schemas import (
    CashClose, CashMovement, CashMovementCreate, CashOpen, CashStatus,
    Client, ClientCreate, ClientUpdate,
    Product, ProductCreate, ProductUpdate,
    SaleCreate, SaleResponse,
    Variant, VariantCreate, VariantUpdate,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def extract_detail(response: httpx.Response, fallback: str) -> str:
    """Mensaje `detail` del cuerpo de error, o el fallback si no hay uno legible."""
    try:
        body = response.json()
    except ValueError:
        return fallback
    if not isinstance(body, dict) or body.get("detail") is None:
        return fallback
    detail = body["detail"]
    if isinstance(detail, str):
        return detail
    return json.dumps(detail, ensure_ascii=False)


def parse_model(model: Type[ModelT], data: Any, fallback: str) -> ModelT:
    """Validar un cuerpo 2xx; si no respeta el contrato, InvalidRemoteResponse."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error(f"Unexpected {model.__name__} from API: {e}")
        raise InvalidRemoteResponse(fallback)


def parse_list(model: Type[ModelT], data: Any, fallback: str) -> List[ModelT]:
    if data is None:
        return []
    if not isinstance(data, list):
        logger.error(f"Expected a list of {model.__name__} from API, got {type(data).__name__}")
        raise InvalidRemoteResponse(fallback)
    return [parse_model(model, item, fallback) for item in data]


class BackendClient:
    """Cliente asíncrono de la API externa para un token de usuario."""

    def __init__(self, token: Optional[str], base_url: Optional[str] = None,
                 timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        else:
            logger.warning("No access token available for API request")

        self._client = httpx.AsyncClient(
            base_url=base_url or settings.BACKEND_API_URL,
            headers=headers,
            timeout=timeout or settings.HTTP_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, fallback: str,
                       payload: Optional[BaseModel] = None,
                       params: Optional[dict] = None,
                       partial: bool = False) -> Any:
        body = None
        if payload is not None:
            body = payload.model_dump(mode="json", exclude_unset=partial)

        try:
            response = await self._client.request(method, path, json=body, params=params)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise RemoteRequestFailed(f"{fallback}: {e}")

        if response.is_error:
            detail = extract_detail(response, fallback)
            logger.warning(f"{method} {path} -> {response.status_code}: {detail}")
            raise RemoteRequestFailed(detail, upstream_status=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.error(f"{method} {path} -> {response.status_code}: body is not JSON")
            raise InvalidRemoteResponse(fallback, upstream_status=response.status_code)

    # ============ SALES ============

    async def fetch_sales_today(self) -> List[SaleResponse]:
        fallback = "Failed to fetch sales"
        data = await self._request("GET", "/ventas/hoy", fallback)
        return parse_list(SaleResponse, data, fallback)

    async def process_sale(self, sale: SaleCreate) -> SaleResponse:
        """
        Registrar una venta.

        Con InvalidRemoteResponse la API ya respondió 2xx: la venta quedó
        registrada aunque el cuerpo no se pueda leer.
        """
        fallback = "Failed to process sale"
        data = await self._request("POST", "/ventas/", fallback, payload=sale)
        return parse_model(SaleResponse, data, fallback)

    # ============ CASH ============

    async def fetch_cash_status(self) -> Optional[CashStatus]:
        """Estado de la caja actual; None si la API no tiene ninguna registrada."""
        fallback = "Failed to fetch cash status"
        data = await self._request("GET", "/caja/estado", fallback)
        if not data:
            return None
        return parse_model(CashStatus, data, fallback)

    async def open_register(self, data: CashOpen) -> CashStatus:
        fallback = "Error opening register"
        result = await self._request("POST", "/caja/apertura", fallback, payload=data)
        return parse_model(CashStatus, result, fallback)

    async def close_register(self, data: CashClose) -> CashStatus:
        fallback = "Error closing register"
        result = await self._request("POST", "/caja/cierre", fallback, payload=data)
        return parse_model(CashStatus, result, fallback)

    async def fetch_cash_movements(self) -> List[CashMovement]:
        fallback = "Failed to fetch movements"
        data = await self._request("GET", "/caja/movimientos", fallback)
        return parse_list(CashMovement, data, fallback)

    async def create_cash_movement(self, data: CashMovementCreate) -> CashMovement:
        fallback = "Error creating movement"
        result = await self._request("POST", "/caja/movimiento", fallback, payload=data)
        return parse_model(CashMovement, result, fallback)

    # ============ PRODUCTS ============

    async def fetch_products(self, categoria_id: Optional[int] = None) -> List[Product]:
        fallback = "Failed to fetch products"
        params = {"categoria_id": categoria_id} if categoria_id else None
        data = await self._request("GET", "/productos/", fallback, params=params)
        return parse_list(Product, data, fallback)

    async def create_product(self, data: ProductCreate) -> Product:
        fallback = "Failed to create product"
        result = await self._request("POST", "/productos/", fallback, payload=data)
        return parse_model(Product, result, fallback)

    async def update_product(self, product_id: str, data: ProductUpdate) -> Product:
        fallback = "Failed to update product"
        result = await self._request("PATCH", f"/productos/{product_id}", fallback,
                                     payload=data, partial=True)
        return parse_model(Product, result, fallback)

    # ============ VARIANTS ============

    async def create_variant(self, data: VariantCreate) -> Variant:
        fallback = "Failed to create variant"
        result = await self._request("POST", "/productos/variante", fallback, payload=data)
        return parse_model(Variant, result, fallback)

    async def update_variant(self, variant_id: str, data: VariantUpdate) -> Variant:
        fallback = "Failed to update variant"
        result = await self._request("PATCH", f"/productos/variante/{variant_id}", fallback,
                                     payload=data, partial=True)
        return parse_model(Variant, result, fallback)

    # ============ CLIENTS ============

    async def fetch_clients(self, query: Optional[str] = None) -> List[Client]:
        fallback = "Failed to fetch clients"
        params = {"query": query} if query else None
        data = await self._request("GET", "/clientes/", fallback, params=params)
        return parse_list(Client, data, fallback)

    async def create_client(self, data: ClientCreate) -> Client:
        fallback = "Failed to create client"
        result = await self._request("POST", "/clientes/", fallback, payload=data)
        return parse_model(Client, result, fallback)

    async def update_client(self, client_id: str, data: ClientUpdate) -> Client:
        fallback = "Failed to update client"
        result = await self._request("PATCH", f"/clientes/{client_id}", fallback,
                                     payload=data, partial=True)
        return parse_model(Client, result, fallback)
