from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from shorty.api.deps import get_store
from shorty.db.repository import MappingStore
from shorty.schemas import HealthResponse

router = APIRouter(prefix="/api", tags=["health"])

# simple liveness
@router.get("/health", response_model=HealthResponse)
def health():
    return {"status": "ok"}

# readiness: check store connectivity
@router.get("/ready")
def readiness(store: MappingStore = Depends(get_store)):
    if store.ping():
        return {"ready": True, "store": "ok"}
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"ready": False, "store": "unavailable"},
    )
