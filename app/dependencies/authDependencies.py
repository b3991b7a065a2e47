"""
Dependencias de autenticación para FastAPI.

La identidad la emite un proveedor externo; acá sólo se lee el bearer token
para reenviarlo a la API y para saber qué operador hace cada acción.
"""
from typing import Annotated, Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


class AuthContext(BaseModel):
    """Token del operador y los datos que se leen de él"""
    token: str
    user_id: str
    email: Optional[str] = None


def decode_token(token: str) -> dict:
    """
    Decodificar el JWT del proveedor de identidad.

    Con AUTH_JWT_SECRET configurado se verifica firma y audiencia; sin él
    sólo se lee el payload y la verificación queda a cargo de la API.
    """
    if settings.verify_tokens:
        return jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=settings.AUTH_JWT_ALGORITHMS,
            audience=settings.AUTH_JWT_AUDIENCE,
        )
    return jwt.decode(token, options={"verify_signature": False})


def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> AuthContext:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Usuario no autenticado",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None or not credentials.credentials:
        raise credentials_exception

    try:
        payload = decode_token(credentials.credentials)
    except jwt.PyJWTError as e:
        logger.debug(f"Rejected bearer token: {e}")
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    return AuthContext(
        token=credentials.credentials,
        user_id=str(user_id),
        email=payload.get("email"),
    )


auth_dependency = Annotated[AuthContext, Depends(get_auth_context)]
