"""
Middleware de cabeceras de seguridad
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Agrega cabeceras de seguridad a las respuestas propias.

    Las respuestas del proxy se devuelven tal cual las envía la API.
    """

    def __init__(self, app, exempt_prefixes=None):
        super().__init__(app)
        self.exempt_prefixes = list(exempt_prefixes or [settings.PROXY_PREFIX])

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        if any(request.url.path.startswith(prefix) for prefix in self.exempt_prefixes):
            return response

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        if settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response
