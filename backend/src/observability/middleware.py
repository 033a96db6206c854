"""Access logging with request correlation.

Every request gets an X-Request-ID (propagated when the client sends a
well-formed one) and one completion log line carrying method, path, status,
duration and the calling tenant when authentication resolved one.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging_config import get_logger
from .request_id import REQUEST_ID_HEADER, reset_request_id, resolve_request_id, set_request_id

logger = get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = set_request_id(request_id)
        start = time.time()
        extra = {"method": request.method, "path": request.url.path}

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {request.url.path} raised {type(e).__name__}",
                extra={**extra, "duration_ms": round((time.time() - start) * 1000, 2)},
                exc_info=True,
            )
            raise
        else:
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={
                    **extra,
                    "status_code": response.status_code,
                    "duration_ms": round((time.time() - start) * 1000, 2),
                    "tenant_id": getattr(request.state, "tenant_id", None),
                },
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            reset_request_id(token)
