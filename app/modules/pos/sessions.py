"""
Estado de sesión del POS, uno por operador autenticado.

Vive sólo en memoria del proceso: el carrito no sobrevive a un reinicio.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional

from app.common.exceptions import ActionInProgress
from app.core.config import settings
from app.modules.backend.schemas import CashStatus
from app.modules.pos.cart import Cart, ScanCandidate

logger = logging.getLogger(__name__)


class PosSession:
    """Carrito, buffer de escaneo, cliente y medio de pago de un operador"""

    def __init__(self, user_id: str, default_payment_method: Optional[str] = None):
        self.user_id = user_id
        self.default_payment_method = default_payment_method or settings.DEFAULT_PAYMENT_METHOD
        self.cart = Cart()
        self.catalog: List[ScanCandidate] = []
        self.scan_buffer = ""
        self.selected_client_id: Optional[str] = None
        self.payment_method = self.default_payment_method
        # Último estado de caja conocido; sin consultar hasta que loaded sea True
        self.register_status: Optional[CashStatus] = None
        self.register_status_loaded = False
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def ensure_idle(self) -> None:
        if self._busy:
            raise ActionInProgress()

    @asynccontextmanager
    async def action(self) -> AsyncIterator["PosSession"]:
        """
        Una acción a la vez por sesión.

        Mientras una acción espera su respuesta de la API, cualquier otra
        falla con ActionInProgress en lugar de encolarse.
        """
        self.ensure_idle()
        self._busy = True
        try:
            yield self
        finally:
            self._busy = False

    def remember_register(self, status: Optional[CashStatus]) -> None:
        self.register_status = status
        self.register_status_loaded = True

    def on_sale_accepted(self) -> None:
        """Única limpieza de estado: sólo tras una venta aceptada por la API."""
        self.cart.clear()
        self.scan_buffer = ""
        self.selected_client_id = None
        self.payment_method = self.default_payment_method


class SessionRegistry:
    """Sesiones POS activas indexadas por usuario."""

    def __init__(self):
        self._sessions: Dict[str, PosSession] = {}

    def get(self, user_id: str) -> PosSession:
        session = self._sessions.get(user_id)
        if session is None:
            logger.debug(f"New POS session for user {user_id}")
            session = PosSession(user_id)
            self._sessions[user_id] = session
        return session

    def discard(self, user_id: str) -> None:
        self._sessions.pop(user_id, None)

    def __len__(self) -> int:
        return len(self._sessions)


sessions = SessionRegistry()
