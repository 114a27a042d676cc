import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


logger = logging.getLogger("chat_relay.middleware")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per HTTP request. WebSocket traffic is not passed through here."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"{request.method} {request.url.path} - {process_time:.2f}ms - {response.status_code}",
            extra={"status_code": response.status_code, "duration_ms": round(process_time, 2)},
        )
        return response
