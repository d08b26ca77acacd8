from fastapi import Request

from app.features.favicons.services.favicon_service import FaviconService
from app.features.favicons.services.repository import FaviconRepository


def get_repository(request: Request) -> FaviconRepository:
    return request.app.state.repository


def get_favicon_service(request: Request) -> FaviconService:
    return request.app.state.favicon_service
