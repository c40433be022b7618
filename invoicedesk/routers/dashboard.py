from fastapi import APIRouter, Depends

from invoicedesk.dependencies.services import get_dashboard_service
from invoicedesk.routers.errors import raise_http_error
from invoicedesk.schemas.dashboard import DashboardStats
from invoicedesk.services import DashboardService
from invoicedesk.services.exceptions import ServiceError

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    service: DashboardService = Depends(get_dashboard_service),
):
    try:
        return await service.stats()
    except ServiceError as exc:
        raise_http_error(exc)
