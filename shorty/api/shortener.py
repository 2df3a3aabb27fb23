from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import RedirectResponse
from typing import Optional
import logging

from shorty.api.deps import get_service
from shorty.schemas import ErrorResponse, ShortenResponse, URLCreateRequest
from shorty.services.shortener import URLService

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post(
    "/api/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["shorten"],
)
def shorten_url_endpoint(
    response: Response,
    url_request: Optional[URLCreateRequest] = None,
    service: URLService = Depends(get_service),
):
    result = service.shorten(url_request.url if url_request else None)
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return ShortenResponse.from_result(result)

@router.get(
    "/{short_code}",
    status_code=status.HTTP_302_FOUND,
    responses={404: {"model": ErrorResponse}},
    tags=["redirect"],
)
def redirect_to_url_endpoint(short_code: str, service: URLService = Depends(get_service)):
    original_url = service.redirect(short_code)
    return RedirectResponse(url=original_url, status_code=status.HTTP_302_FOUND)
