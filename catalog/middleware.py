"""Middleware that assigns and propagates a request identifier.

Every incoming HTTP request receives a request identifier. The value of the
incoming ``X-Request-ID`` header is reused when the client sends one,
otherwise a UUIDv4 is generated. The id is stored on ``request.state`` and
in a context variable so code running downstream (repositories, the order
service, log filters) can read it without passing it around. The response
carries the same id in its ``X-Request-ID`` header.
"""

import contextvars
import logging
import uuid

from fastapi import Request

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")
HEADER = "X-Request-ID"

logger = logging.getLogger("catalog.http")


async def add_request_id(request: Request, call_next):
    rid = request.headers.get(HEADER) or str(uuid.uuid4())
    request.state.request_id = rid
    token = REQUEST_ID_CTX.set(rid)
    try:
        response = await call_next(request)
        logger.info(
            "request handled",
            extra={"path": request.url.path, "method": request.method, "status": response.status_code},
        )
    finally:
        REQUEST_ID_CTX.reset(token)
    response.headers[HEADER] = rid
    return response
