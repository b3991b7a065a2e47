from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import logging

# Import middleware and error handlers
from app.common.middleware import SecurityHeadersMiddleware
from app.common.exceptions import register_exception_handlers

# Import routers
from app.modules.pos.routers import sale_router, cash_router
from app.modules.products.router import product_router
from app.modules.clients.router import client_router
from app.modules.dashboard.router import dashboard_router
from app.modules.proxy.router import router as proxy_router
from app.modules.pos.sessions import sessions

from app.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="Caja POS Dashboard API",
    description="Backend del dashboard de punto de venta: venta, caja, catálogo, clientes y proxy hacia la API",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None
)

# Add middleware (order matters!)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SecurityHeadersMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(sale_router)
app.include_router(cash_router)
app.include_router(product_router)
app.include_router(client_router)
app.include_router(dashboard_router)
app.include_router(proxy_router)


@app.get("/")
async def read_root():
    return {
        "message": "Caja POS Dashboard API is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}

@app.on_event("startup")
async def startup_event():
    logger.info("Caja POS Dashboard API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")
    logger.info(f"API: {settings.BACKEND_API_URL}")
    logger.info(f"Proxy: {settings.PROXY_PREFIX} -> {settings.PROXY_TARGET_URL}")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Caja POS Dashboard API shutting down ({len(sessions)} open POS sessions)...")
