from fastapi import APIRouter, Query, status
from typing import Optional

from app.dependencies.backendDependencies import backend_dependency
from app.modules.clients.schemas import ClientCreate, ClientList, ClientOut, ClientUpdate
from app.modules.clients.service import ClientService

client_router = APIRouter(prefix="/clientes", tags=["Clients"])


@client_router.get("/", response_model=ClientList)
async def list_clients(
    client: backend_dependency,
    query: Optional[str] = Query(None, description="Buscar por nombre o DNI/CUIT"),
):
    return await ClientService(client).list_clients(query)


@client_router.post("/", response_model=ClientOut, status_code=status.HTTP_201_CREATED)
async def create_client(data: ClientCreate, client: backend_dependency):
    """Crear cliente. Los campos opcionales vacíos se envían como null."""
    return await ClientService(client).create_client(data)


@client_router.patch("/{client_id}", response_model=ClientOut)
async def update_client(client_id: str, data: ClientUpdate, client: backend_dependency):
    """Actualizar sólo los campos enviados."""
    return await ClientService(client).update_client(client_id, data)
