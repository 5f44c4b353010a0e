"""
ProcureHub Health Check Routes
Liveness, readiness and component status
"""
from fastapi import APIRouter
from datetime import datetime, timezone
import sys
import psutil
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from typing import Dict, Any

from ..database import engine
from ..logging_config import db_logger

router = APIRouter(prefix="/api/health", tags=["health"])

START_TIME = datetime.now(timezone.utc)

# Tables whose row counts are reported by the full check
COUNTED_TABLES = ("requests", "approval_steps", "approvers", "brfqs", "modification_requests")


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_uptime() -> str:
    """Process uptime as a human-readable string"""
    delta = datetime.now(timezone.utc) - START_TIME
    hours, remainder = divmod(delta.seconds, 3600)
    minutes, seconds = divmod(remainder, 60)

    if delta.days > 0:
        return f"{delta.days}d {hours}h {minutes}m"
    elif hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    else:
        return f"{minutes}m {seconds}s"


def check_database() -> Dict[str, Any]:
    """Check database connectivity and key table sizes"""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            tables = set(inspect(conn).get_table_names())
            counts = {
                table: conn.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar()
                for table in COUNTED_TABLES
                if table in tables
            }

        return {
            "status": "healthy",
            "dialect": engine.dialect.name,
            "tables": len(tables),
            "row_counts": counts,
        }
    except SQLAlchemyError as e:
        db_logger.error("Database health check failed", error=e)
        return {
            "status": "unhealthy",
            "error": str(e),
        }


def check_system() -> Dict[str, Any]:
    """Check system resources"""
    try:
        cpu_percent = psutil.cpu_percent(interval=0.1)
        memory = psutil.virtual_memory()

        return {
            "status": "healthy" if memory.percent < 90 else "warning",
            "cpu_percent": cpu_percent,
            "memory_percent": memory.percent,
            "memory_available_gb": round(memory.available / (1024**3), 2),
            "python_version": sys.version.split()[0],
        }
    except psutil.Error as e:
        return {
            "status": "unknown",
            "error": str(e),
        }


# ============================================================
# ROUTES
# ============================================================

@router.get("/live")
def health_live():
    """
    Liveness probe - is the service running?
    Returns 200 if the service is alive.
    """
    return {
        "ok": True,
        "status": "alive",
        "uptime": get_uptime(),
        "timestamp": _timestamp(),
    }


@router.get("/ready")
def health_ready():
    """
    Readiness probe - can the service reach its database?
    """
    db = check_database()
    ready = db["status"] == "healthy"

    return {
        "ok": ready,
        "status": "ready" if ready else "not_ready",
        "checks": {
            "database": db["status"],
        },
        "timestamp": _timestamp(),
    }


@router.get("/full")
def health_full():
    """
    Full health check - detailed status of all components.
    Use for monitoring dashboards.
    """
    db = check_database()
    system = check_system()

    statuses = [db["status"], system["status"]]
    if "unhealthy" in statuses:
        overall = "unhealthy"
    elif "warning" in statuses:
        overall = "degraded"
    else:
        overall = "healthy"

    return {
        "ok": overall == "healthy",
        "status": overall,
        "uptime": get_uptime(),
        "started_at": START_TIME.isoformat(),
        "checks": {
            "database": db,
            "system": system,
        },
        "timestamp": _timestamp(),
    }
