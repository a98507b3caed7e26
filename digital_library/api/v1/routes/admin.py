from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from digital_library.api.dependencies import require_admin
from digital_library.database import get_db
from digital_library.schemas.admin import AnalyticsResponse
from digital_library.schemas.context import UserContext
from digital_library.services.analytics_service import analytics_service

router = APIRouter(tags=["Admin"], prefix="/admin")


@router.get(
    "/analytics",
    response_model=AnalyticsResponse,
    summary="Usage analytics",
    responses={403: {"description": "Admin role required"}},
)
async def get_analytics(
    admin: UserContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return AnalyticsResponse(data=await analytics_service.get_dashboard(db))
