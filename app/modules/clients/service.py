"""
Servicio del módulo de Clientes: búsqueda, alta y edición contra la API.
"""
import logging
from typing import Optional

from app.modules.backend.client import BackendClient
from app.modules.backend.schemas import Client
from app.modules.clients.schemas import ClientCreate, ClientList, ClientOut, ClientUpdate

logger = logging.getLogger(__name__)


def format_address(client: Client) -> Optional[str]:
    """Dirección y ciudad separadas por coma, omitiendo las vacías."""
    parts = [part for part in (client.direccion, client.ciudad) if part]
    return ", ".join(parts) or None


def to_client_out(client: Client) -> ClientOut:
    return ClientOut(**client.model_dump(), direccion_completa=format_address(client))


class ClientService:

    def __init__(self, client: BackendClient):
        self.client = client

    async def list_clients(self, query: Optional[str] = None) -> ClientList:
        query = (query or "").strip() or None
        clients = await self.client.fetch_clients(query)
        return ClientList(clientes=[to_client_out(c) for c in clients], total=len(clients))

    async def create_client(self, data: ClientCreate) -> ClientOut:
        created = await self.client.create_client(data)
        logger.info(f"Client {created.id} created")
        return to_client_out(created)

    async def update_client(self, client_id: str, data: ClientUpdate) -> ClientOut:
        updated = await self.client.update_client(client_id, data)
        logger.info(f"Client {client_id} updated")
        return to_client_out(updated)
