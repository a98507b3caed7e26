from fastapi import APIRouter

from digital_library.config import ENVIRONMENT, VERSION
from digital_library.schemas.base import StandardResponse

router = APIRouter(tags=["Root"])


@router.get(
    "/",
    response_model=StandardResponse,
    summary="API Root",
)
async def root():
    return StandardResponse(
        success=True,
        message="Digital Library API",
        data={
            "features": ["Catalog", "Downloads", "Personal library", "Reviews"],
            "environment": ENVIRONMENT,
            "version": VERSION,
        },
    )
