import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response

logger = logging.getLogger(__name__)


async def log_api_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Log ``METHOD path status in Nms`` for API calls."""
    if not request.url.path.startswith("/api"):
        return await call_next(request)

    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"{request.method} {request.url.path} {response.status_code} in {elapsed_ms:.0f}ms")
    return response
