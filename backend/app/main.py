import logging
import sys
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse

from app.config.settings import settings
from app.errors import AppError, UpstreamError
from app.middleware.request_logging import log_requests_middleware
from app.routes.order_routes import router as order_router
from app.routes.product_routes import router as product_router
from app.utils.logger import get_logger


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
# Per-request chatter from the upstream client; shown only at DEBUG
CHATTY_LOGGERS = ("httpx", "httpcore")


def _configure_logging() -> None:
    """Route every lookup, login and PDF log line through one stdout format.

    A barcode resolved on the second attempt logs as::

        2026-03-04 09:05:00 | INFO     | app.services.product_service:113 | Product found — barcode=8690000000001 via POST /product/getProductByBarcode (Barcode)

    Safe to call more than once: ``create_app()`` runs per test, so an
    existing root handler is reformatted instead of duplicated.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        for handler in root.handlers:
            handler.setFormatter(formatter)
    else:
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setFormatter(formatter)
        root.addHandler(stdout_handler)

    chatty_level = logging.NOTSET if level <= logging.DEBUG else logging.WARNING
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(chatty_level)


def _static_file(static_root: Path, request_path: str) -> Path | None:
    """Return the file to serve for a client path, falling back to index.html."""
    root = static_root.resolve()
    if request_path:
        candidate = (root / request_path).resolve()
        if candidate.is_file() and candidate.is_relative_to(root):
            return candidate
    index = root / "index.html"
    return index if index.is_file() else None


def create_app() -> FastAPI:
    _configure_logging()

    logger = get_logger(__name__)
    logger.info(
        "Starting Barcode Order Desk — log_level=%s, upstream=%s",
        settings.log_level.upper(),
        settings.ts_url("/"),
    )
    if not settings.ts_username or not settings.ts_password:
        logger.warning("TS_USERNAME / TS_PASSWORD not set — product lookups will fail until configured.")

    app = FastAPI(title="Barcode Order Desk", version="0.1.0")

    app.middleware("http")(log_requests_middleware)
    logger.debug("Request-logging middleware registered.")

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if isinstance(exc, UpstreamError):
            logger.error("%s %s — upstream failure: %s", request.method, request.url.path, exc)
        else:
            logger.warning("%s %s — %s: %s", request.method, request.url.path, type(exc).__name__, exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_content())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("%s %s — invalid request: %s", request.method, request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"error": "Geçersiz istek"})

    @app.get("/health")
    def health() -> dict[str, bool]:
        return {"ok": True}

    app.include_router(product_router)
    logger.info("Product router mounted at /api/product.")

    app.include_router(order_router)
    logger.info("Order PDF router mounted at /api/pdf.")

    static_root = Path(settings.static_dir)

    # Registered last so it never shadows the API routes above
    @app.get("/{full_path:path}", include_in_schema=False, response_model=None)
    async def client_app(full_path: str) -> FileResponse | JSONResponse:
        target = _static_file(static_root, full_path)
        if target is None:
            return JSONResponse(status_code=404, content={"error": "Not found"})
        return FileResponse(target)

    logger.info("Static client served from %s", static_root.resolve())
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.host, port=settings.port)
