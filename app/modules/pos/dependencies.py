"""
Dependencias del módulo POS: sesión del operador autenticado.
"""
from typing import Annotated

from fastapi import Depends

from app.dependencies.authDependencies import AuthContext, get_auth_context
from app.modules.pos.sessions import PosSession, sessions


def get_pos_session(auth_context: AuthContext = Depends(get_auth_context)) -> PosSession:
    return sessions.get(auth_context.user_id)


session_dependency = Annotated[PosSession, Depends(get_pos_session)]
