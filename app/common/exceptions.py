"""
Errores de negocio del punto de venta.

Todos se recuperan en el punto de la acción del operador: el handler
registrado en la app los convierte en {"detail": mensaje} con su status,
sin tocar el estado local (carrito, caja).
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class POSError(Exception):
    """Error base del POS, con el mensaje que ve el operador."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Error en la operación"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class OutOfStock(POSError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Producto sin stock disponible."


class StockExceeded(POSError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, stock_ceiling: int):
        self.stock_ceiling = stock_ceiling
        super().__init__(f"Stock insuficiente. Máximo: {stock_ceiling}")


class ScanNotFound(POSError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"No se encontró producto con SKU/ID: {code}")


class EmptyCart(POSError):
    default_detail = "El carrito está vacío"


class NoOpenRegister(POSError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "No hay una caja abierta"


class RegisterAlreadyOpen(POSError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Ya hay una caja abierta"


class InvalidAmount(POSError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "El monto debe ser mayor a cero"


class InvalidDescription(POSError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "La descripción no puede estar vacía"


class InvalidMovementType(POSError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Tipo de movimiento inválido"


class ConfirmationRequired(POSError):
    default_detail = "Confirmá el cierre de caja. Esta acción no se puede deshacer."


class ActionInProgress(POSError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Hay una operación en curso, esperá a que termine"


class RemoteRequestFailed(POSError):
    """Respuesta no-2xx de la API externa o falla de transporte."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, detail: str, upstream_status: Optional[int] = None):
        self.upstream_status = upstream_status
        super().__init__(detail)
        # Los 4xx de la API se reenvían tal cual para que el operador vea el mismo error
        if upstream_status is not None and 400 <= upstream_status < 500:
            self.status_code = upstream_status


class InvalidRemoteResponse(RemoteRequestFailed):
    """Respuesta 2xx de la API con un cuerpo que no se puede leer."""


async def pos_error_handler(request: Request, exc: POSError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(POSError, pos_error_handler)
