"""
Error taxonomy
──────────────
Services raise these; app.main turns any AppError into a JSON response
with an ``error`` key (and ``detail`` for upstream failures).
"""
from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message: str = "Sunucu hatası"

    def to_content(self) -> dict[str, str]:
        return {"error": self.public_message}


class UpstreamError(AppError):
    """Any failure talking to T-Soft. Surfaced as 502 with the reason in ``detail``."""

    status_code = status.HTTP_502_BAD_GATEWAY
    public_message = "Upstream hata"

    def to_content(self) -> dict[str, str]:
        return {"error": self.public_message, "detail": str(self)}


class UpstreamAuthError(UpstreamError):
    """Login rejected, or login answered without a usable token."""


class ConfigError(UpstreamAuthError):
    """Upstream credentials are not configured."""


class UpstreamTransportError(UpstreamError):
    """Timeout, network failure or non-2xx status from T-Soft."""


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    public_message = "Ürün bulunamadı"


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.public_message = message


class PdfRenderError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = "PDF üretim hatası"
