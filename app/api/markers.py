"""
Single-file marker endpoints.

Check, add, remove and reassign the Mark of the Web of one file. These are
manual operations: the direct reassign endpoint accepts every zone,
including Restricted Sites.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from pydantic import BaseModel, Field

from app.api.deps import get_watcher_service
from app.models.schemas import TrustZone
from domains.zone_watch.marker_store import MarkerErrorKind, MarkerResult, MarkerStore
from domains.zone_watch.service import WatcherService

router = APIRouter()

STATUS_BY_KIND = {
    MarkerErrorKind.EMPTY_PATH: 400,
    MarkerErrorKind.INVALID_ZONE: 400,
    MarkerErrorKind.NOT_FOUND: 404,
    MarkerErrorKind.ACCESS_DENIED: 403,
    MarkerErrorKind.RESTRICTED_ZONE_PROTECTED: 409,
    MarkerErrorKind.IO_ERROR: 500,
    MarkerErrorKind.UNEXPECTED: 500,
}


class MarkerStatus(BaseModel):
    """Marker state of a file."""
    path: str
    has_marker: bool
    zone_id: Optional[int] = None
    zone_name: Optional[str] = None


class FileRequest(BaseModel):
    """Request naming one file."""
    path: str


class ZoneRequest(FileRequest):
    """Request naming one file and a zone."""
    zone_id: int = Field(default=3)


class MarkerOperationResponse(BaseModel):
    """Marker operation result."""
    success: bool
    path: str
    zone_id: Optional[int] = None
    kind: Optional[MarkerErrorKind] = None
    message: Optional[str] = None


def get_marker_store(service: WatcherService = Depends(get_watcher_service)) -> MarkerStore:
    return service.store


def _respond(path: str, result: MarkerResult, store: MarkerStore) -> MarkerOperationResponse:
    if not result.success:
        status_code = STATUS_BY_KIND.get(result.kind, 500)
        raise HTTPException(status_code=status_code, detail=result.message)

    zone = store.get_zone(path)
    return MarkerOperationResponse(
        success=True,
        path=path,
        zone_id=int(zone) if zone is not None else None,
        kind=result.kind,
        message=result.message,
    )


@router.get("", response_model=MarkerStatus)
def get_marker(path: str, store: MarkerStore = Depends(get_marker_store)):
    """Report whether ``path`` carries a marker and its zone."""
    zone = store.get_zone(path)
    return MarkerStatus(
        path=path,
        has_marker=store.has_marker(path),
        zone_id=int(zone) if zone is not None else None,
        zone_name=zone.label if zone is not None else None,
    )


@router.post("/block", response_model=MarkerOperationResponse)
def block_file(request: ZoneRequest, store: MarkerStore = Depends(get_marker_store)):
    """Add (or overwrite) the marker of a file."""
    logger.info(f"Manual block requested for {request.path} (zone {request.zone_id})")
    return _respond(request.path, store.set_marker(request.path, request.zone_id), store)


@router.post("/unblock", response_model=MarkerOperationResponse)
def unblock_file(request: FileRequest, store: MarkerStore = Depends(get_marker_store)):
    """Remove the marker of a file."""
    logger.info(f"Manual unblock requested for {request.path}")
    return _respond(request.path, store.remove_marker(request.path), store)


@router.post("/reassign", response_model=MarkerOperationResponse)
def reassign_file(request: ZoneRequest, store: MarkerStore = Depends(get_marker_store)):
    """Reassign a file directly to any zone (advanced)."""
    logger.info(f"Direct reassign requested for {request.path} -> zone {request.zone_id}")
    return _respond(request.path, store.reassign(request.path, request.zone_id), store)


@router.post("/progressive", response_model=MarkerOperationResponse)
def reassign_progressive(request: FileRequest, store: MarkerStore = Depends(get_marker_store)):
    """Move a file down one zone, removing the marker below Local Machine."""
    logger.info(f"Progressive reassign requested for {request.path}")
    return _respond(request.path, store.reassign_progressive(request.path), store)


ZONE_CHOICES = {int(zone): zone.label for zone in TrustZone}


@router.get("/zones")
def list_zones():
    """List the zone ids and names."""
    return ZONE_CHOICES
