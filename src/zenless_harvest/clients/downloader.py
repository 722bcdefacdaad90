# ABOUTME: Streaming icon downloader writing response bytes straight to a destination file
# ABOUTME: Checks content type and size while streaming and removes partial files on failure

from pathlib import Path

import httpx
from pydantic import BaseModel

from zenless_harvest.clients.wiki import USER_AGENT
from zenless_harvest.errors import FileSystemError, NetworkError, ValidationError
from zenless_harvest.utils.logging import get_logger
from zenless_harvest.validation.security import SecurityValidator

CHUNK_SIZE = 64 * 1024


class DownloadResult(BaseModel):
    """Outcome of one download: bytes on disk, or why there are none."""

    success: bool
    path: Path
    bytes_written: int = 0
    content_type: str | None = None
    error: str | None = None
    error_type: str | None = None


class AssetDownloader:
    """Downloads icons through a shared httpx client.

    Args:
        validator: Policy used for content type and size checks
        client: Optional pre-built httpx client; closed by the caller when given
        timeout: Per-request timeout in seconds
        verify: Enforce the size limits (content type is always checked)
    """

    def __init__(
        self,
        validator: SecurityValidator,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        verify: bool = True,
    ):
        self.validator = validator
        self.verify = verify
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            timeout=timeout,
            follow_redirects=True,
        )
        self.logger = get_logger(__name__)

    async def download(self, url: str, destination: Path) -> DownloadResult:
        """Stream ``url`` into ``destination``; never raises for download problems."""
        try:
            written, content_type = await self._stream_to_file(url, destination)
        except (NetworkError, ValidationError, FileSystemError) as e:
            self._remove_partial(destination)
            self.logger.warning("Download failed", url=url, error=str(e), error_type=type(e).__name__)
            return DownloadResult(success=False, path=destination, error=str(e), error_type=type(e).__name__)

        self.logger.info("Downloaded asset", url=url, path=str(destination), size_bytes=written)
        return DownloadResult(success=True, path=destination, bytes_written=written, content_type=content_type)

    async def _stream_to_file(self, url: str, destination: Path) -> tuple[int, str | None]:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(f"cannot create {destination.parent}: {e}") from e

        written = 0
        try:
            async with self._client.stream("GET", url) as response:
                if response.status_code >= 400:
                    raise NetworkError(
                        f"HTTP {response.status_code} downloading {url}", status_code=response.status_code
                    )

                content_type = response.headers.get("content-type")
                if not self.validator.validate_content_type(content_type):
                    raise ValidationError(f"content type {content_type or '(none)'!r} is not an image")

                # Check content length if provided
                content_length = self._declared_length(response, url)
                if self.verify and content_length is not None and content_length > self.validator.max_file_size:
                    raise ValidationError(
                        f"declared size {content_length} exceeds {self.validator.max_file_size} bytes"
                    )

                try:
                    with destination.open("wb") as handle:
                        async for chunk in response.aiter_bytes(CHUNK_SIZE):
                            written += len(chunk)
                            if self.verify and written > self.validator.max_file_size:
                                raise ValidationError(
                                    f"download exceeded {self.validator.max_file_size} bytes"
                                )
                            handle.write(chunk)
                except OSError as e:
                    raise FileSystemError(f"cannot write {destination}: {e}") from e
        except httpx.TimeoutException as e:
            raise NetworkError(f"download timed out: {url}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"download failed: {url}: {e}") from e

        if self.verify and not self.validator.validate_file_size(written):
            raise ValidationError(f"downloaded size {written} bytes is outside 1..{self.validator.max_file_size}")

        return written, content_type

    def _declared_length(self, response: httpx.Response, url: str) -> int | None:
        """Content-Length as an int, or None when absent or malformed.

        A malformed header is ignored; the streaming cap still bounds the size.
        """
        raw = response.headers.get("content-length")
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            self.logger.warning("Ignoring malformed content-length", url=url, content_length=raw)
            return None

    def _remove_partial(self, destination: Path) -> None:
        try:
            destination.unlink(missing_ok=True)
        except OSError as e:
            self.logger.error("Could not remove partial download", path=str(destination), error=str(e))

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
