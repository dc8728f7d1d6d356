from typing import Any, Dict

import httpx

from app.config.settings import Settings, settings
from app.errors import UpstreamTransportError
from app.services.tsoft_auth_service import TSoftAuthService, tsoft_auth_service
from app.utils.logger import get_logger

logger = get_logger(__name__)


class TSoftService:
    def __init__(
        self,
        auth: TSoftAuthService = tsoft_auth_service,
        config: Settings = settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.auth = auth
        self.config = config
        self._transport = transport

    async def call(self, method: str, api_path: str, params: Dict[str, Any] | None = None) -> Any:
        """Send an authenticated request and return the decoded JSON body.

        POST sends a form-encoded body, GET sends query parameters; either way
        the session token goes first. A body that is not JSON comes back as None.
        """
        token = await self.auth.get_valid_token()
        url = self.config.ts_url(api_path)
        with_token = {"token": token, **(params or {})}
        method = method.upper()

        try:
            async with httpx.AsyncClient(
                timeout=self.config.upstream_timeout_seconds, transport=self._transport
            ) as client:
                if method == "GET":
                    response = await client.get(url, params=with_token)
                else:
                    response = await client.request(
                        method,
                        url,
                        data=with_token,
                        headers={"Content-Type": "application/x-www-form-urlencoded",
                                 "Accept": "application/json"},
                    )
        except httpx.TimeoutException as exc:
            logger.error("%s %s — timed out", method, api_path)
            raise UpstreamTransportError(
                f"{method} {api_path} timed out after {self.config.upstream_timeout_seconds:g}s"
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("%s %s — transport failure: %s", method, api_path, exc)
            raise UpstreamTransportError(f"{method} {api_path} failed: {exc}") from exc

        logger.debug("%s %s — http_status=%d", method, api_path, response.status_code)
        if response.status_code >= 400:
            logger.error(
                "T-Soft API Error [%d] %s %s: %.200s",
                response.status_code, method, api_path, response.text,
            )
            raise UpstreamTransportError(
                f"{method} {api_path} failed with status {response.status_code}"
            )

        try:
            return response.json()
        except ValueError:
            logger.warning("%s %s — response is not JSON, treating as empty", method, api_path)
            return None


tsoft_service = TSoftService()
