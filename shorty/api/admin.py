from fastapi import APIRouter, Depends
from typing import List
import logging

from shorty.api.deps import get_service
from shorty.schemas import URLInfoResponse
from shorty.services.shortener import URLService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["admin"])

@router.get("/urls", response_model=List[URLInfoResponse])
def list_urls_endpoint(service: URLService = Depends(get_service)):
    views = service.list_all()
    logger.debug("Admin listing returned %d mappings", len(views))
    return [URLInfoResponse.from_view(v) for v in views]
