"""
System health router.

Wired to:
- StorageBackend for database connectivity
- GraphStore for snapshot status
- Settings for configuration
"""

import time

from fastapi import APIRouter

from foresight import __version__
from foresight.config import get_settings
from foresight.engine.graph_store import get_graph_store
from foresight.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()

# Track startup time for uptime calculation
_startup_time = time.time()


@router.get("/health")
async def system_health():
    """
    Get system health status.
    Checks database connectivity and whether a graph snapshot is loaded.
    """
    settings = get_settings()
    uptime = time.time() - _startup_time

    db_status = "healthy"
    try:
        from foresight.storage import get_storage

        get_storage().list_cascade_reports(limit=1)
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"

    store = get_graph_store()
    graph_version = store.snapshot().version if store.is_loaded else None

    return {
        "success": True,
        "data": {
            "status": "healthy" if db_status == "healthy" and graph_version else "degraded",
            "version": __version__,
            "uptime_seconds": round(uptime, 1),
            "database": db_status,
            "graph_loaded": graph_version is not None,
            "graph_version": graph_version,
            "dev_mode": settings.dev_mode,
        },
    }
