import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from task_service.observability.logging import request_id_var

logger = logging.getLogger("tasks.access")


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """
    Binds the request id (from X-Request-ID or freshly generated) so every
    service, gateway and handler log line of the request carries it.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        start = time.perf_counter()
        route = {"category": "http", "method": request.method, "path": request.url.path}

        try:
            logger.debug(
                "request.start",
                extra={
                    **route,
                    "event": "request.start",
                    "query": str(request.url.query),
                    "client": request.client.host if request.client else None,
                },
            )
            try:
                response: Response = await call_next(request)
            except Exception:
                logger.exception(
                    "request.error",
                    extra={**route, "event": "request.error", "duration_ms": _elapsed_ms(start)},
                )
                raise

            response.headers["X-Request-ID"] = request_id
            logger.info(
                "request.end",
                extra={
                    **route,
                    "event": "request.end",
                    "status_code": response.status_code,
                    "duration_ms": _elapsed_ms(start),
                },
            )
            return response
        finally:
            request_id_var.reset(token)
