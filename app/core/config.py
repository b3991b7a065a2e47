from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pydantic import field_validator

class Settings(BaseSettings):
    # API de ventas/caja/catálogo (consumida por el cliente tipado)
    BACKEND_API_URL: str = 'http://127.0.0.1:8000/api/v1'

    # Proxy same-origin hacia la API
    PROXY_TARGET_URL: str = 'http://127.0.0.1:8000/api/v1'
    PROXY_PREFIX: str = '/api/python'

    # HTTP
    HTTP_TIMEOUT: float = 30.0

    # Autenticación (proveedor de identidad externo)
    AUTH_JWT_SECRET: Optional[str] = None
    AUTH_JWT_ALGORITHMS: list = ["HS256"]
    AUTH_JWT_AUDIENCE: Optional[str] = 'authenticated'

    # Punto de venta
    DEFAULT_PAYMENT_METHOD: str = 'Efectivo'

    # CORS
    CORS_ORIGINS: list = ["http://localhost:3000"]

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    @property
    def verify_tokens(self) -> bool:
        return bool(self.AUTH_JWT_SECRET)

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DEBUG", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

    @field_validator("BACKEND_API_URL", "PROXY_TARGET_URL", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

settings = Settings()
