"""Component health checks backing /health and /ready.

Two components matter for dispatch: the database (every send writes audit
rows) and the adapter registry (every send resolves an adapter).
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from channels.registry import AdapterRegistry
from .logging_config import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def check_database_health(db: Session) -> ComponentHealth:
    """Round-trip a trivial query; report latency or the failure."""
    start = time.time()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {type(e).__name__}", exc_info=True)
        return ComponentHealth(status=HealthStatus.UNHEALTHY, message="Database unreachable")
    return ComponentHealth(
        status=HealthStatus.HEALTHY,
        message="Database connection OK",
        latency_ms=round((time.time() - start) * 1000, 2),
    )


def check_adapter_health(registry: AdapterRegistry) -> ComponentHealth:
    """A registry missing any channel type cannot route every connection."""
    try:
        registry.validate()
    except RuntimeError as e:
        return ComponentHealth(status=HealthStatus.DEGRADED, message=str(e))
    return ComponentHealth(
        status=HealthStatus.HEALTHY,
        message=f"{len(registry.list_available())} channel adapters registered",
    )


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    """Worst component status wins."""
    statuses = {c.status for c in components.values()}
    if HealthStatus.UNHEALTHY in statuses:
        return HealthStatus.UNHEALTHY
    if HealthStatus.DEGRADED in statuses:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY
