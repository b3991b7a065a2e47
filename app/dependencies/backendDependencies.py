from typing import Annotated, AsyncIterator
from fastapi import Depends

from app.dependencies.authDependencies import AuthContext, get_auth_context
from app.modules.backend.client import BackendClient


async def get_backend_client(
    auth_context: AuthContext = Depends(get_auth_context)
) -> AsyncIterator[BackendClient]:
    """Cliente de la API con el token del operador, cerrado al terminar el request."""
    async with BackendClient(auth_context.token) as client:
        yield client


backend_dependency = Annotated[BackendClient, Depends(get_backend_client)]
