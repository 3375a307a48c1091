"""
Admin endpoints for watcher management.

Includes:
- Watcher start/stop/status
- Manual "run rules now" scans
- Statistics and configuration
"""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from loguru import logger
from pydantic import BaseModel

from app.api.deps import get_watcher_service
from app.models.schemas import OperationStatus, ScanSummary, WatcherConfig, WatcherStatistics
from app.utils.watcher_config import save_watcher_config
from domains.zone_watch.service import ScanInProgressError, WatcherService

router = APIRouter()


class WatcherStatusResponse(BaseModel):
    """Watcher session state."""
    running: bool
    scanning: bool
    watched_paths: List[str]
    pending_files: int
    debounce_delay_ms: int


class ScanResponse(BaseModel):
    """Scan operation response."""
    status: str
    message: str
    summary: Optional[ScanSummary] = None


@router.post("/watcher/start", response_model=OperationStatus)
def start_watcher(service: WatcherService = Depends(get_watcher_service)):
    """Start watching the configured directories."""
    started = service.start()
    return OperationStatus(
        status="started" if started else "running",
        message="Watcher started" if started else "Watcher is already running",
        details=service.status(),
    )


@router.post("/watcher/stop", response_model=OperationStatus)
def stop_watcher(service: WatcherService = Depends(get_watcher_service)):
    """Stop watching."""
    was_running = service.is_running
    service.stop()
    return OperationStatus(
        status="stopped",
        message="Watcher stopped" if was_running else "Watcher was not running",
    )


@router.get("/watcher/status", response_model=WatcherStatusResponse)
def watcher_status(service: WatcherService = Depends(get_watcher_service)):
    """Get watcher session state."""
    return WatcherStatusResponse(**service.status())


def _run_scan_in_background(service: WatcherService):
    try:
        service.run_scan()
    except ScanInProgressError:
        logger.warning("Scan skipped - another scan is already running")


@router.post("/scan", response_model=ScanResponse)
def trigger_scan(
    background_tasks: BackgroundTasks,
    wait: bool = False,
    service: WatcherService = Depends(get_watcher_service),
):
    """
    Apply directory rules to every existing file.

    Args:
        wait: If True, run the scan in the request and return its counts.
            Otherwise, queue it as a background task.

    Returns:
        Scan status
    """
    logger.info(f"Manual scan triggered (wait={wait})")

    if service.is_scanning:
        raise HTTPException(status_code=409, detail="A scan is already running")

    if not wait:
        background_tasks.add_task(_run_scan_in_background, service)
        return ScanResponse(status="queued", message="Scan of all configured directories queued")

    try:
        summary = service.run_scan()
    except ScanInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return ScanResponse(
        status="completed",
        message=f"Processed {summary.processed} files",
        summary=summary,
    )


@router.get("/stats", response_model=WatcherStatistics)
def get_statistics(service: WatcherService = Depends(get_watcher_service)):
    """Get processing statistics."""
    if service.statistics is None:
        raise HTTPException(status_code=404, detail="Statistics are not recorded")
    return service.statistics.snapshot()


@router.delete("/stats", response_model=OperationStatus)
def reset_statistics(service: WatcherService = Depends(get_watcher_service)):
    """Reset processing statistics."""
    if service.statistics is None:
        raise HTTPException(status_code=404, detail="Statistics are not recorded")

    service.statistics.reset()
    return OperationStatus(status="reset", message="Statistics reset")


@router.get("/config", response_model=WatcherConfig)
def get_config(service: WatcherService = Depends(get_watcher_service)):
    """Get the active watcher configuration."""
    return service.config


@router.put("/config", response_model=OperationStatus)
def update_config(config: WatcherConfig, service: WatcherService = Depends(get_watcher_service)):
    """
    Replace the watcher configuration.

    The configuration is saved and the watch session rebuilt; a running
    session is restarted.
    """
    if not save_watcher_config(config, service.settings.config_file):
        raise HTTPException(status_code=500, detail="Failed to save configuration")

    service.reload(config)
    return OperationStatus(
        status="updated",
        message=f"Configuration saved with {len(config.watched_directories)} watched directories",
        details=service.status(),
    )
