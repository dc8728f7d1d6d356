import time

from fastapi import Request

from app.utils.logger import get_logger

logger = get_logger(__name__)


async def log_requests_middleware(request: Request, call_next):
    started = time.perf_counter()
    query = f"?{request.url.query}" if request.url.query else ""
    logger.debug("→ %s %s%s", request.method, request.url.path, query)

    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.exception("✗ %s %s — unhandled error after %.1fms", request.method, request.url.path, elapsed_ms)
        raise

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "← %s %s%s — %d in %.1fms",
        request.method,
        request.url.path,
        query,
        response.status_code,
        elapsed_ms,
    )
    return response
