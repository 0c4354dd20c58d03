# ErrorEnvelopeMiddleware
import logging
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from fastapi import Request, Response
from fastapi.responses import JSONResponse

log = logging.getLogger("facegroup.http")

# recluster of a large group legitimately takes this long
SLOW_REQUEST_SECONDS = 10.0


class ErrorEnvelopeMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and turns unhandled errors into a JSON 500.

    Typed ``AppError``s never reach this point; the FastAPI exception handler
    renders them first.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        started = time.monotonic()
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]
        request.state.rid = rid

        try:
            response: Response = await call_next(request)
        except Exception:
            log.exception("%s %s failed (rid=%s)", request.method, request.url.path, rid)
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error", "request_id": rid},
                headers={"x-request-id": rid},
            )

        elapsed = time.monotonic() - started
        if elapsed > SLOW_REQUEST_SECONDS:
            log.warning("%s %s took %.1fs (rid=%s)", request.method, request.url.path, elapsed, rid)
        response.headers.setdefault("x-request-id", rid)
        response.headers.setdefault("x-content-type-options", "nosniff")
        response.headers["server-timing"] = f"app;dur={elapsed * 1000:.2f}"
        return response
