"""Shared FastAPI middleware."""

from __future__ import annotations

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse

from itinerary_worker.core.config import get_settings


class MaxBodySizeMiddleware(BaseHTTPMiddleware):
    """
    Reject requests with bodies larger than MAX_REQUEST_BODY_BYTES.

    Creation requests are two short fields; anything big is abuse.
    """

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        limit = int(get_settings().MAX_REQUEST_BODY_BYTES)

        content_length = request.headers.get("content-length")
        if content_length:
            try:
                if int(content_length) > limit:
                    return JSONResponse({"error": "Payload too large."}, status_code=413)
            except ValueError:
                return JSONResponse({"error": "Invalid Content-Length header."}, status_code=400)

        # For chunked / missing content-length, read body and enforce size.
        # Starlette caches request.body() so downstream handlers still can read it.
        body = await request.body()
        if body and len(body) > limit:
            return JSONResponse({"error": "Payload too large."}, status_code=413)

        return await call_next(request)
