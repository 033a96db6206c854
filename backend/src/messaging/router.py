"""Messaging API endpoints

POST /messages/send, /send-media, /send-batch, /send-template,
/send-interactive and GET /messages/{id}/status.

The tenant is always derived from the bearer token. Successful sends answer
201 with {success, data}; failures are rendered by the DispatchError handler
in main.py as {success: false, error, message, details?}.
"""

from fastapi import APIRouter, Depends, status

from auth.dependencies import CurrentTenantId
from dependencies import get_dispatch_service
from .schemas import (
    SendBatchRequest,
    SendInteractiveRequest,
    SendMediaRequest,
    SendMessageRequest,
    SendTemplateRequest,
)
from .service import MessageDispatchService


router = APIRouter(prefix="/messages", tags=["Messages"])


@router.post("/send", status_code=status.HTTP_201_CREATED)
def send_message(
    request: SendMessageRequest,
    tenant_id: CurrentTenantId,
    service: MessageDispatchService = Depends(get_dispatch_service),
):
    """Send a text message through a channel connection."""
    result = service.send_text(tenant_id, request.channel_id, request.to, request.message)
    return {"success": True, "data": result.to_dict()}


@router.post("/send-media", status_code=status.HTTP_201_CREATED)
def send_media(
    request: SendMediaRequest,
    tenant_id: CurrentTenantId,
    service: MessageDispatchService = Depends(get_dispatch_service),
):
    """Send an image, video, audio or document referenced by URL.

    Responds 400 UNSUPPORTED_MEDIA_TYPE when the channel does not accept the
    media type and 400 AUDIO_CONVERSION_FAILED when the network cannot
    transcode it.
    """
    result = service.send_media(
        tenant_id,
        request.channel_id,
        request.to,
        request.media_type,
        request.media_url,
        caption=request.caption,
        filename=request.filename,
    )
    return {"success": True, "data": result.to_dict()}


@router.post("/send-batch", status_code=status.HTTP_201_CREATED)
def send_batch(
    request: SendBatchRequest,
    tenant_id: CurrentTenantId,
    service: MessageDispatchService = Depends(get_dispatch_service),
):
    """Send up to 100 text messages sequentially.

    The response is 201 even when some items failed. Every element of `data`
    must be checked: failed items carry status "failed", id 0 and an `error`.
    """
    results = service.send_batch(tenant_id, request.messages)
    return {
        "success": True,
        "data": [r.to_dict() for r in results],
        "count": len(results),
    }


@router.post("/send-template", status_code=status.HTTP_201_CREATED)
def send_template(
    request: SendTemplateRequest,
    tenant_id: CurrentTenantId,
    service: MessageDispatchService = Depends(get_dispatch_service),
):
    """Send a pre-approved template (WhatsApp Business-API channels only)."""
    components = (
        [c.model_dump() for c in request.components] if request.components else None
    )
    result = service.send_template(
        tenant_id,
        request.channel_id,
        request.to,
        request.template_name,
        request.template_language,
        components,
    )
    return {"success": True, "data": result.to_dict()}


@router.post("/send-interactive", status_code=status.HTTP_201_CREATED)
def send_interactive(
    request: SendInteractiveRequest,
    tenant_id: CurrentTenantId,
    service: MessageDispatchService = Depends(get_dispatch_service),
):
    """Send a button or list message (WhatsApp Business-API channels only)."""
    result = service.send_interactive(
        tenant_id,
        request.channel_id,
        request.to,
        request.interactive_type,
        request.content.model_dump(exclude_none=True),
        request.options.model_dump(exclude_none=True),
    )
    return {"success": True, "data": result.to_dict()}


@router.get("/{message_id}/status")
def get_message_status(
    message_id: int,
    tenant_id: CurrentTenantId,
    service: MessageDispatchService = Depends(get_dispatch_service),
):
    """Current status of a message owned by the caller's tenant."""
    return {"success": True, "data": service.get_message_status(tenant_id, message_id)}
