# ABOUTME: Network clients for wiki entry pages and icon downloads
# ABOUTME: Both wrap httpx.AsyncClient and translate failures into the harvest error taxonomy

from .downloader import AssetDownloader, DownloadResult
from .wiki import HoyoWikiClient

__all__ = [
    "AssetDownloader",
    "DownloadResult",
    "HoyoWikiClient",
]
