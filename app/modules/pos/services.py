"""
Servicios de negocio para el módulo POS (Point of Sale)

Implementa la lógica que conecta la sesión del operador con la API:
- CheckoutService: catálogo de escaneo, carrito y confirmación de venta
- CashRegisterService: estado de caja, apertura/cierre y movimientos

Las validaciones locales (stock, montos, descripción, caja cerrada) se hacen
antes de cualquier llamada a la API. Un error nunca modifica el estado local.
"""

import logging
from typing import Any, Optional

from app.common.exceptions import (
    ConfirmationRequired, InvalidAmount, InvalidRemoteResponse, NoOpenRegister,
    RegisterAlreadyOpen, RemoteRequestFailed, ScanNotFound
)
from app.modules.backend.client import BackendClient
from app.modules.backend.schemas import (
    CashClose, CashMovement, CashOpen, CashStatus, PaymentMethod, SaleResponse
)
from app.modules.pos.cart import build_sale_request, resolve_scan
from app.modules.pos.ledger import (
    compute_estimated_balance, parse_amount, summarize_movements, validate_movement
)
from app.modules.pos.schemas import CashOverview, MovementSummaryOut
from app.modules.pos.sessions import PosSession
from app.modules.products.service import flatten_variants

logger = logging.getLogger(__name__)


class CheckoutService:
    """Servicio para la venta en curso de un operador"""

    def __init__(self, session: PosSession, client: BackendClient):
        self.session = session
        self.client = client

    async def load_catalog(self) -> int:
        """Recargar el catálogo de escaneo; devuelve la cantidad de variantes."""
        async with self.session.action():
            await self._refresh_catalog()
        return len(self.session.catalog)

    async def _refresh_catalog(self) -> None:
        products = await self.client.fetch_products()
        self.session.catalog = flatten_variants(products)
        logger.debug(f"Scan catalog loaded for {self.session.user_id}: {len(self.session.catalog)} variants")

    async def scan(self, code: str) -> None:
        """
        Escanear un código y agregar la variante al carrito.

        El buffer de escaneo queda vacío tanto si hubo match como si no.
        """
        async with self.session.action():
            if not self.session.catalog:
                await self._refresh_catalog()

            self.session.scan_buffer = code
            try:
                variant = resolve_scan(code, self.session.catalog)
                self.session.cart.add_variant(variant)
            finally:
                self.session.scan_buffer = ""

    async def add_variant(self, variant_id: str) -> None:
        """Agregar por id de variante, elegida de la lista del catálogo."""
        async with self.session.action():
            if not self.session.catalog:
                await self._refresh_catalog()

            for candidate in self.session.catalog:
                if candidate.variant_id == variant_id:
                    self.session.cart.add_variant(candidate)
                    return
            raise ScanNotFound(variant_id)

    def adjust_quantity(self, variant_id: str, delta: int) -> None:
        self.session.ensure_idle()
        self.session.cart.adjust_quantity(variant_id, delta)

    def remove_line(self, variant_id: str) -> None:
        self.session.ensure_idle()
        self.session.cart.remove_line(variant_id)

    def clear_cart(self) -> None:
        self.session.ensure_idle()
        self.session.cart.clear()

    def select_client(self, client_id: Optional[str]) -> None:
        self.session.ensure_idle()
        self.session.selected_client_id = client_id or None

    def set_payment_method(self, method: PaymentMethod) -> None:
        self.session.ensure_idle()
        self.session.payment_method = method.value

    async def checkout(self) -> Optional[SaleResponse]:
        """
        Confirmar la venta.

        Sólo una venta aceptada limpia la sesión; si la API la rechaza el
        carrito queda intacto para reintentar. Un 2xx con cuerpo ilegible
        también es una venta aceptada: se limpia la sesión y se devuelve None.
        """
        async with self.session.action():
            sale = build_sale_request(
                self.session.cart,
                self.session.selected_client_id,
                self.session.payment_method,
            )
            try:
                response = await self.client.process_sale(sale)
            except InvalidRemoteResponse as e:
                logger.warning(f"Sale accepted with an unreadable response: {e}")
                response = None
            self.session.on_sale_accepted()

            sale_id = response.id if response else "?"
            logger.info(
                f"Sale {sale_id} accepted: {len(sale.items)} items, "
                f"total {sale.total}, {sale.metodo_pago}"
            )

            # Recargar stock para que los topes de las próximas líneas estén al día
            try:
                await self._refresh_catalog()
            except RemoteRequestFailed as e:
                logger.warning(f"Catalog reload after sale {sale_id} failed: {e}")

        return response


class CashRegisterService:
    """Servicio para la caja del operador"""

    def __init__(self, session: PosSession, client: BackendClient, user_id: str):
        self.session = session
        self.client = client
        self.user_id = user_id

    async def overview(self) -> CashOverview:
        """Estado de caja; movimientos y saldo estimado sólo si está abierta."""
        status = await self.client.fetch_cash_status()
        self.session.remember_register(status)

        if status is None or not status.is_open:
            return CashOverview(estado=status, abierta=False)

        movements = await self.client.fetch_cash_movements()
        return CashOverview(
            estado=status,
            abierta=True,
            movimientos=movements,
            resumen=MovementSummaryOut.from_summary(summarize_movements(movements)),
            saldo_estimado=compute_estimated_balance(status, movements),
        )

    async def _known_status(self) -> Optional[CashStatus]:
        """Estado de caja de la sesión; se consulta a la API sólo si no se conoce."""
        if not self.session.register_status_loaded:
            self.session.remember_register(await self.client.fetch_cash_status())
        return self.session.register_status

    async def open_register(self, opening_amount: Any) -> CashStatus:
        """Abrir caja; sólo desde caja cerrada o sin caja."""
        amount = parse_amount(opening_amount)
        if amount < 0:
            raise InvalidAmount("El monto de apertura no puede ser negativo")

        async with self.session.action():
            current = await self._known_status()
            if current is not None and current.is_open:
                raise RegisterAlreadyOpen()

            status = await self.client.open_register(
                CashOpen(monto_apertura=amount, usuario_id=self.user_id)
            )
            logger.info(f"Register opened by {self.user_id} with {amount}")
            self.session.remember_register(status)
            return status

    async def close_register(self, declared_amount: Any, notes: Optional[str],
                             confirmed: bool) -> CashStatus:
        """Cerrar caja. Irreversible para el operador: exige confirmación explícita."""
        if not confirmed:
            raise ConfirmationRequired()

        amount = parse_amount(declared_amount)
        if amount < 0:
            raise InvalidAmount("El efectivo declarado no puede ser negativo")

        async with self.session.action():
            current = await self._known_status()
            if current is None or not current.is_open:
                raise NoOpenRegister("La caja debe estar abierta para cerrarla")

            status = await self.client.close_register(
                CashClose(monto_real_efectivo=amount, observaciones=(notes or "").strip() or None)
            )
            logger.info(f"Register closed by {self.user_id}, declared {amount}")
            self.session.remember_register(status)
            return status

    async def record_movement(self, tipo: Any, monto: Any, descripcion: Optional[str]) -> CashMovement:
        """
        Registrar un ingreso/egreso manual.

        Con la caja cerrada se rechaza antes de llamar a la API; si todavía
        no se conoce el estado de caja, se consulta primero.
        """
        movement = validate_movement(tipo, monto, descripcion)

        async with self.session.action():
            status = await self._known_status()
            if status is None or not status.is_open:
                raise NoOpenRegister("La caja debe estar abierta para registrar movimientos")

            created = await self.client.create_cash_movement(movement)
            logger.info(f"Cash movement {created.id}: {created.tipo.value} {created.monto}")
            return created

