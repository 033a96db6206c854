"""Observability module for the inbox service.

Provides structured logging, metrics, and health checks.
"""

from .logging_config import configure_logging, get_logger
from .metrics import (
    messages_dispatched_total,
    dispatch_latency_ms,
    dispatch_rejections_total,
    batch_size,
)
from .request_id import request_id_var, get_request_id, set_request_id, generate_request_id
from .health import HealthStatus, ComponentHealth
from .middleware import RequestIDMiddleware

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Metrics
    "messages_dispatched_total",
    "dispatch_latency_ms",
    "dispatch_rejections_total",
    "batch_size",
    # Request ID
    "request_id_var",
    "get_request_id",
    "set_request_id",
    "generate_request_id",
    # Health
    "HealthStatus",
    "ComponentHealth",
    # Middleware
    "RequestIDMiddleware",
]
