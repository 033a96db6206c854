"""Observability endpoints: Prometheus scrape, component health, readiness."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.orm import Session

from channels.registry import AdapterRegistry
from database import get_db
from dependencies import get_adapter_registry
from .health import HealthStatus, check_adapter_health, check_database_health, get_overall_health

API_VERSION = "1.0.0"

router = APIRouter(tags=["Observability"])


@router.get("/metrics", include_in_schema=False)
def metrics():
    """Dispatch counters and latency histograms in Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/health")
def health_check(
    db: Session = Depends(get_db),
    registry: AdapterRegistry = Depends(get_adapter_registry),
):
    """Per-component status. 503 only when a component is unhealthy."""
    components = {
        "database": check_database_health(db),
        "adapters": check_adapter_health(registry),
    }
    overall = get_overall_health(components)

    return JSONResponse(
        status_code=503 if overall == HealthStatus.UNHEALTHY else 200,
        content={
            "status": overall.value,
            "components": {
                name: {"status": c.status.value, "message": c.message, "latency_ms": c.latency_ms}
                for name, c in components.items()
            },
        },
    )


@router.get("/ready")
def readiness_check(db: Session = Depends(get_db)):
    """Ready once the database answers; sends cannot be audited without it."""
    db_health = check_database_health(db)
    if db_health.status == HealthStatus.HEALTHY:
        return {"status": "ready"}
    return JSONResponse(status_code=503, content={"status": "not_ready", "message": db_health.message})


@router.get("/api/v1/health", tags=["Health"])
def api_health():
    """Liveness in the standard success envelope."""
    return {
        "success": True,
        "data": {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": API_VERSION,
        },
    }
