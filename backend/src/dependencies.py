"""Global FastAPI dependencies for the dispatch service.

This module provides:
- get_adapter_registry: Process-wide channel adapter registry
- get_dispatch_service: Request-scoped MessageDispatchService

The registry is built once, on first use or at startup, and closed on
shutdown. Tests override get_adapter_registry with recording adapters.
"""

import threading
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from channels.registry import AdapterRegistry
from channels.implementations import build_default_registry
from messaging.service import MessageDispatchService


_registry: Optional[AdapterRegistry] = None
_registry_lock = threading.Lock()


def get_adapter_registry() -> AdapterRegistry:
    """Return the process-wide adapter registry, building it on first call.

    Raises:
        RuntimeError: If any channel type has no adapter
    """
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = build_default_registry()
    return _registry


def close_adapter_registry() -> None:
    """Close adapters and their shared HTTP client. Called on shutdown."""
    global _registry
    with _registry_lock:
        if _registry is not None:
            _registry.close()
            _registry = None


def get_dispatch_service(
    db: Session = Depends(get_db),
    registry: AdapterRegistry = Depends(get_adapter_registry),
) -> MessageDispatchService:
    """Build a MessageDispatchService bound to the request's session.

    Example:
        @router.post("/messages/send")
        def send(service: MessageDispatchService = Depends(get_dispatch_service)):
            ...
    """
    return MessageDispatchService(
        db,
        registry,
        system_user_id=settings.SYSTEM_USER_ID,
        batch_max_size=settings.BATCH_MAX_SIZE,
    )
