"""Health check endpoints for CampusConnect.

- /health: process is up
- /health/live: liveness probe, never touches the database
- /health/ready: readiness probe, 503 when the database is unreachable
- /health/detailed: database, disk and memory plus the module switches
"""

import time
from typing import Dict, Any
from datetime import datetime

import psutil
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text

from campusconnect import __version__
from campusconnect.api.deps import get_db
from campusconnect.core.config import get_settings

router = APIRouter(tags=["health"])

# Percent used at which a host resource is reported as warning / critical
DISK_THRESHOLDS = (85, 95)
MEMORY_THRESHOLDS = (85, 95)

GB = 1024 ** 3


def _now() -> str:
    return datetime.utcnow().isoformat()


def _level(percent_used: float, warning: float, critical: float) -> str:
    if percent_used >= critical:
        return "critical"
    if percent_used >= warning:
        return "warning"
    return "healthy"


def _rollup(checks: Dict[str, Dict[str, Any]]) -> str:
    """Fold individual check statuses into healthy / degraded / unhealthy."""
    seen = {check.get("status", "unknown") for check in checks.values()}
    if seen & {"unhealthy", "critical"}:
        return "unhealthy"
    if "warning" in seen:
        return "degraded"
    return "healthy"


def check_database(db: Session) -> Dict[str, Any]:
    """Run a trivial query and report its round trip."""
    started = time.perf_counter()
    try:
        db.execute(text("SELECT 1")).fetchone()
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}

    return {
        "status": "healthy",
        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
        "dialect": db.get_bind().dialect.name,
    }


def check_disk(path: str = "/") -> Dict[str, Any]:
    try:
        usage = psutil.disk_usage(path)
    except Exception as e:
        return {"status": "unknown", "error": str(e)}

    return {
        "status": _level(usage.percent, *DISK_THRESHOLDS),
        "path": path,
        "total_gb": round(usage.total / GB, 2),
        "free_gb": round(usage.free / GB, 2),
        "percent_used": usage.percent,
    }


def check_memory() -> Dict[str, Any]:
    try:
        memory = psutil.virtual_memory()
    except Exception as e:
        return {"status": "unknown", "error": str(e)}

    return {
        "status": _level(memory.percent, *MEMORY_THRESHOLDS),
        "total_gb": round(memory.total / GB, 2),
        "available_gb": round(memory.available / GB, 2),
        "percent_used": memory.percent,
    }


@router.get("/health")
async def health_check():
    return {"status": "healthy", "version": __version__, "timestamp": _now()}


@router.get("/health/live")
async def liveness_probe():
    return {"status": "alive", "timestamp": _now()}


@router.get("/health/ready")
async def readiness_probe(db: Session = Depends(get_db)):
    checks = {"database": check_database(db)}
    failed = [name for name, check in checks.items() if check["status"] == "unhealthy"]

    content: Dict[str, Any] = {
        "status": "not_ready" if failed else "ready",
        "checks": checks,
        "timestamp": _now(),
    }
    if failed:
        content["failed"] = failed
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=content)
    return content


@router.get("/health/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    settings = get_settings()
    checks = {
        "database": check_database(db),
        "disk": check_disk(),
        "memory": check_memory(),
    }
    overall = _rollup(checks)

    return JSONResponse(
        status_code=(
            status.HTTP_503_SERVICE_UNAVAILABLE if overall == "unhealthy" else status.HTTP_200_OK
        ),
        content={
            "status": overall,
            "version": __version__,
            "checks": checks,
            "modules": {
                "clearance": settings.clearance_module_enabled,
                "notifications": settings.notifications_enabled,
            },
            "timestamp": _now(),
        },
    )
