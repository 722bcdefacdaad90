# ABOUTME: HoYoLAB wiki entry-page client built on httpx.AsyncClient
# ABOUTME: Any HTTP, transport, decoding or retcode failure surfaces as a NetworkError

import httpx
from pydantic import ValidationError as PydanticValidationError

from zenless_harvest.config import HarvestConfig
from zenless_harvest.core.models import Language
from zenless_harvest.errors import NetworkError
from zenless_harvest.extraction.payload import RawPayload
from zenless_harvest.utils.logging import get_logger, log_api_call

USER_AGENT = "zenless-harvest/0.1 (+https://wiki.hoyolab.com/pc/zzz)"

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": USER_AGENT,
    "x-rpc-wiki_app": "zzz",
}


class HoyoWikiClient:
    """Fetches entry pages from the wiki API.

    Args:
        config: Run configuration (endpoint and timeout)
        client: Optional pre-built httpx client; closed by the caller when given
    """

    def __init__(self, config: HarvestConfig, client: httpx.AsyncClient | None = None):
        self.base_url = config.api_base_url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers=DEFAULT_HEADERS,
            timeout=config.request_timeout_s,
            follow_redirects=True,
        )
        self.logger = get_logger(__name__)

    @log_api_call("hoyowiki.entry_page")
    async def fetch(self, remote_id: int, language: Language) -> RawPayload:
        """Fetch one entry page.

        Raises:
            NetworkError: With the HTTP status when one was received
        """
        params = {"entry_page_id": str(remote_id), "lang": language.api_code}
        try:
            response = await self._client.get(self.base_url, params=params, headers=DEFAULT_HEADERS)
        except httpx.TimeoutException as e:
            raise NetworkError(f"request timed out for page {remote_id} ({language.value})") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"request failed for page {remote_id} ({language.value}): {e}") from e

        if response.status_code >= 400:
            raise NetworkError(
                f"HTTP {response.status_code} {response.reason_phrase} for page {remote_id} ({language.value})",
                status_code=response.status_code,
            )

        content_type = response.headers.get("content-type", "")
        if "json" not in content_type.lower():
            raise NetworkError(
                f"unexpected content type {content_type or '(none)'!r} for page {remote_id}",
                status_code=response.status_code,
            )

        try:
            payload = RawPayload.model_validate_json(response.content)
        except PydanticValidationError as e:
            raise NetworkError(f"invalid response body for page {remote_id}: {e}", status_code=200) from e

        if payload.retcode != 0:
            raise NetworkError(
                f"API error retcode={payload.retcode}: {payload.message or 'unknown'}",
                status_code=response.status_code,
            )
        self.logger.debug("Fetched entry page", remote_id=remote_id, language=language.value)
        return payload

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HoyoWikiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
