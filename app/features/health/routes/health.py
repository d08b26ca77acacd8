from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError

from app.features.favicons.dependencies.favicon import get_repository
from app.features.favicons.services.repository import FaviconRepository

router = APIRouter()


@router.get("/healthz", tags=["health"], response_class=PlainTextResponse)
async def health_check(repository: FaviconRepository = Depends(get_repository)):
    try:
        await repository.ping()
    except SQLAlchemyError:
        return PlainTextResponse(
            "Database connection failed", status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )
    return PlainTextResponse("ok", status_code=status.HTTP_200_OK)
