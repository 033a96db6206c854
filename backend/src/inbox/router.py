"""Inbox read endpoints

GET /channels, /conversations and /contacts for the calling tenant.
List endpoints use page-based pagination with `limit` capped at 100.
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, Query

from auth.dependencies import CurrentTenantId
from dependencies import get_dispatch_service
from messaging.service import MessageDispatchService


router = APIRouter(tags=["Inbox"])


def _pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }


@router.get("/channels")
def list_channels(
    tenant_id: CurrentTenantId,
    service: MessageDispatchService = Depends(get_dispatch_service),
):
    """Active channel connections the tenant can send through."""
    return {"success": True, "data": service.list_channels(tenant_id)}


@router.get("/conversations")
def list_conversations(
    tenant_id: CurrentTenantId,
    service: MessageDispatchService = Depends(get_dispatch_service),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100, description="Page size (default 20, max 100)"),
    channel_id: Optional[int] = Query(None, alias="channelId"),
    status_filter: Optional[str] = Query(None, alias="status"),
):
    """List conversations, newest activity first."""
    conversations, total = service.list_conversations(
        tenant_id, page=page, limit=limit, channel_id=channel_id, status=status_filter
    )
    return {
        "success": True,
        "data": conversations,
        "pagination": _pagination(page, limit, total),
    }


@router.get("/contacts")
def list_contacts(
    tenant_id: CurrentTenantId,
    service: MessageDispatchService = Depends(get_dispatch_service),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100, description="Page size (default 20, max 100)"),
    search: Optional[str] = Query(None, max_length=100, description="Match name, phone, email or identifier"),
):
    """List contacts, newest first."""
    contacts, total = service.list_contacts(tenant_id, page=page, limit=limit, search=search)
    return {
        "success": True,
        "data": contacts,
        "pagination": _pagination(page, limit, total),
    }
