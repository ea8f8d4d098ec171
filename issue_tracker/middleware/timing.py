import logging
import time

from fastapi import Request

logger = logging.getLogger(__name__)


async def timing_middleware(request: Request, call_next):
    """Log every request with its status and duration.

    The duration in seconds is also returned in the ``X-Process-Time`` header.
    """
    start = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - start

    response.headers["X-Process-Time"] = f"{elapsed:.4f}"
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} in {elapsed * 1000:.1f}ms",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(elapsed * 1000, 1),
        },
    )
    return response
