from fastapi import APIRouter

from app.dependencies.backendDependencies import backend_dependency
from app.modules.dashboard.schemas import DashboardSummary
from app.modules.dashboard.service import DashboardService

dashboard_router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@dashboard_router.get("/resumen", response_model=DashboardSummary)
async def get_summary(client: backend_dependency):
    """Ventas de hoy (cantidad y total) y estado de caja."""
    return await DashboardService(client).get_summary()
