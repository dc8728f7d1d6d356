from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable
from urllib.parse import quote

import httpx

from app.config.settings import Settings, settings
from app.errors import ConfigError, UpstreamAuthError, UpstreamTransportError
from app.utils.logger import get_logger
from app.utils.security import mask_token

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TSoftSession:
    token: str
    expires_at: datetime


class TSoftAuthService:
    """Owns the single cached T-Soft session for this process.

    No lock guards the refresh: concurrent lookups that all see an expired
    session each log in, and the last one to finish wins. T-Soft hands out
    an equivalent token every time, so the duplicate logins are harmless.
    """

    def __init__(
        self,
        config: Settings = settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._transport = transport
        self._clock = clock
        self.session: TSoftSession | None = None

    # ------------------------------------------------------------------
    # Token access
    # ------------------------------------------------------------------

    def has_valid_session(self) -> bool:
        if self.session is None or not self.session.token:
            return False
        margin = timedelta(seconds=self._config.token_refresh_margin_seconds)
        return self.session.expires_at - margin > self._clock()

    async def get_valid_token(self) -> str:
        if self.has_valid_session():
            return self.session.token
        logger.debug("get_valid_token — no usable session, logging in")
        return await self.login()

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    async def login(self) -> str:
        username = self._config.ts_username
        password = self._config.ts_password
        if not username or not password:
            logger.error("login — TS_USERNAME / TS_PASSWORD not configured")
            raise ConfigError("T-Soft credentials missing: TS_USERNAME / TS_PASSWORD")

        url = self._config.ts_url(f"/auth/login/{quote(username, safe='')}")
        logger.info("Logging in to T-Soft — user=%s url=%s", username, url)

        try:
            async with httpx.AsyncClient(
                timeout=self._config.upstream_timeout_seconds, transport=self._transport
            ) as client:
                # T-Soft expects application/x-www-form-urlencoded, not JSON
                response = await client.post(
                    url,
                    data={"pass": password},
                    headers={"Content-Type": "application/x-www-form-urlencoded",
                             "Accept": "application/json"},
                )
        except httpx.TimeoutException as exc:
            logger.error("login — timed out after %.1fs", self._config.upstream_timeout_seconds)
            raise UpstreamTransportError(
                f"T-Soft login timed out after {self._config.upstream_timeout_seconds:g}s"
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("login — transport failure: %s", exc)
            raise UpstreamTransportError(f"T-Soft login failed: {exc}") from exc

        if response.status_code in (401, 403):
            logger.warning("login — credentials rejected, http_status=%d", response.status_code)
            raise UpstreamAuthError(f"T-Soft login rejected with status {response.status_code}")
        if response.status_code >= 400:
            logger.error(
                "login — failed, http_status=%d body=%.200s", response.status_code, response.text
            )
            raise UpstreamTransportError(f"T-Soft login failed with status {response.status_code}")

        token = _extract_token(response)
        if not token:
            logger.error("login — succeeded but no token in response body=%.200s", response.text)
            raise UpstreamAuthError(
                "T-Soft login succeeded but no token was found (unexpected response format)"
            )

        expires_at = self._clock() + timedelta(seconds=self._config.token_ttl_seconds)
        self.session = TSoftSession(token=token, expires_at=expires_at)
        logger.info(
            "T-Soft session refreshed — token=%s expires_at=%s",
            mask_token(token),
            expires_at.isoformat(timespec="seconds"),
        )
        return token


def _extract_token(response: httpx.Response) -> str | None:
    """Read ``data[0].token`` from a login response, or None if the shape differs."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    data = body.get("data")
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return None
    token = data[0].get("token")
    return str(token) if token else None


tsoft_auth_service = TSoftAuthService()
