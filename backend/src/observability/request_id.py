"""Request ID correlation.

The current request's id lives in a ContextVar so log records emitted from
the dispatch core carry it without threading it through every call.
"""

import re
import uuid
from contextvars import ContextVar, Token
from typing import Optional

REQUEST_ID_HEADER = "X-Request-ID"

# Client-supplied ids are echoed into logs and headers; anything else is replaced
_ACCEPTED_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def generate_request_id() -> str:
    return uuid.uuid4().hex


def resolve_request_id(incoming: Optional[str]) -> str:
    """Keep a well-formed incoming id, otherwise mint a new one."""
    if incoming and _ACCEPTED_ID.match(incoming):
        return incoming
    return generate_request_id()


def get_request_id() -> str:
    return request_id_var.get() or "no-request-id"


def set_request_id(request_id: str) -> Token:
    return request_id_var.set(request_id)


def reset_request_id(token: Token) -> None:
    request_id_var.reset(token)
