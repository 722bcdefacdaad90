# ABOUTME: URL, host, path and file policy checks applied before any downloaded bytes are written
# ABOUTME: Filename sanitizing keeps destination paths inside the asset root

import re
from pathlib import Path
from urllib.parse import urlsplit

from zenless_harvest.config import DEFAULT_ALLOWED_HOSTS
from zenless_harvest.errors import SecurityError
from zenless_harvest.utils.logging import get_logger

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp", ".gif")
ALLOWED_CONTENT_TYPES = ("image/png", "image/jpeg", "image/jpg", "image/webp", "image/gif")
MAX_FILENAME_LENGTH = 100
URL_PATH_LENGTH = (2, 500)

_DISALLOWED_CHARS = re.compile(r"[^a-zA-Z0-9\-_.]")
_DOT_RUNS = re.compile(r"\.{2,}")
_EDGE_CHARS = re.compile(r"^[.\-]+|[.\-]+$")

RESERVED_NAMES = frozenset(
    ["CON", "PRN", "AUX", "NUL"] + [f"COM{i}" for i in range(1, 10)] + [f"LPT{i}" for i in range(1, 10)]
)


def sanitize_filename(filename: str | None) -> str:
    """Reduce a candidate filename to a safe single path component.

    Separators and any character outside ``[A-Za-z0-9-_.]`` are removed, runs
    of dots collapse to one, leading/trailing dots and dashes are trimmed and
    the result is capped at 100 characters. Windows reserved device names get a
    ``safe_`` prefix. An empty result becomes ``"unknown"``.
    """
    if not filename:
        return "unknown"

    sanitized = _DISALLOWED_CHARS.sub("", filename)
    sanitized = _DOT_RUNS.sub(".", sanitized)
    sanitized = _EDGE_CHARS.sub("", sanitized)

    if not sanitized:
        logger.warning("Filename empty after sanitizing", original=filename)
        return "unknown"

    if len(sanitized) > MAX_FILENAME_LENGTH:
        sanitized = sanitized[:MAX_FILENAME_LENGTH]
        logger.warning("Filename truncated", original=filename, sanitized=sanitized)

    if sanitized.split(".")[0].upper() in RESERVED_NAMES:
        sanitized = f"safe_{sanitized}"
        logger.warning("Reserved filename prefixed", original=filename, sanitized=sanitized)

    return sanitized


class SecurityValidator:
    """Download policy for icon assets.

    Args:
        allowed_hosts: Hostnames icons may be fetched from
        max_file_size: Largest accepted file in bytes
    """

    def __init__(self, allowed_hosts: tuple[str, ...] = DEFAULT_ALLOWED_HOSTS, max_file_size: int = 10 * 1024 * 1024):
        self.allowed_hosts = frozenset(host.lower() for host in allowed_hosts)
        self.max_file_size = max_file_size

    def url_violation(self, url: str) -> str | None:
        """Reason the URL is rejected, or None when it is acceptable."""
        try:
            parts = urlsplit(url)
        except ValueError as e:
            return f"malformed URL: {e}"

        if parts.scheme != "https":
            return f"scheme {parts.scheme or '(none)'!r} is not https"
        hostname = (parts.hostname or "").lower()
        if hostname not in self.allowed_hosts:
            return f"host {hostname or '(none)'!r} is not allowed"
        if not URL_PATH_LENGTH[0] <= len(parts.path) <= URL_PATH_LENGTH[1]:
            return f"URL path length {len(parts.path)} is out of range"
        if not parts.path.lower().endswith(ALLOWED_EXTENSIONS):
            return "URL path does not end with an image extension"
        return None

    def path_violation(self, destination: Path | str, allowed_root: Path | str) -> str | None:
        """Reason the destination is rejected, or None when it lies strictly inside the root."""
        if not str(destination) or not str(allowed_root):
            return "destination and root are required"
        resolved = Path(destination).resolve()
        root = Path(allowed_root).resolve()
        if resolved == root or not resolved.is_relative_to(root):
            return f"destination {resolved} escapes {root}"
        return None

    def validate_icon_url(self, url: str) -> bool:
        reason = self.url_violation(url)
        if reason:
            logger.warning("Icon URL rejected", url=url, reason=reason)
        return reason is None

    def validate_file_path(self, destination: Path | str, allowed_root: Path | str) -> bool:
        reason = self.path_violation(destination, allowed_root)
        if reason:
            logger.warning("Destination path rejected", destination=str(destination), reason=reason)
        return reason is None

    def validate_file_size(self, size_bytes: int) -> bool:
        if size_bytes <= 0:
            return False
        if size_bytes > self.max_file_size:
            logger.warning("File too large", size_bytes=size_bytes, max_bytes=self.max_file_size)
            return False
        return True

    def validate_content_type(self, content_type: str | None) -> bool:
        if not content_type:
            return False
        lowered = content_type.lower()
        valid = any(allowed in lowered for allowed in ALLOWED_CONTENT_TYPES)
        if not valid:
            logger.warning("Content type rejected", content_type=content_type)
        return valid

    def validate_all(self, remote_url: str, destination: Path | str, allowed_root: Path | str) -> bool:
        """True only if both the URL and the destination path pass."""
        url_ok = self.validate_icon_url(remote_url)
        path_ok = self.validate_file_path(destination, allowed_root)
        return url_ok and path_ok

    def require_all(
        self, remote_url: str, destination: Path | str, allowed_root: Path | str, entry_id: str | None = None
    ) -> None:
        """Like validate_all, but raises with the reason.

        Raises:
            SecurityError: On the first violated rule
        """
        reason = self.url_violation(remote_url) or self.path_violation(destination, allowed_root)
        if reason:
            raise SecurityError(reason, entry_id)
