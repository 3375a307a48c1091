"""
Request dependencies shared by the API routers.
"""

from fastapi import HTTPException, Request

from domains.zone_watch.service import WatcherService


def get_watcher_service(request: Request) -> WatcherService:
    """Get the watcher service owned by the running application."""
    service = getattr(request.app.state, "watcher", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Watcher service not initialized")
    return service
