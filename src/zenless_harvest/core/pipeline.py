# ABOUTME: Item pipelines running one entry through fetch, extract, merge and validate (or download)
# ABOUTME: Wrapped in tenacity retry; every item-level error becomes a failed ItemOutcome

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Protocol
from urllib.parse import urlsplit

from zenless_harvest.clients.downloader import AssetDownloader
from zenless_harvest.config import HarvestConfig
from zenless_harvest.core.models import (
    PRIMARY_LANGUAGE,
    SUPPORTED_LANGUAGES,
    AssetRecord,
    HarvestRecord,
    ItemOutcome,
    Language,
    SourceEntry,
)
from zenless_harvest.errors import (
    ExtractionError,
    FileSystemError,
    HarvestError,
    NetworkError,
    ValidationError,
)
from zenless_harvest.extraction.bangboo import BangbooExtractor, merge_bangboo, to_bangboo_record
from zenless_harvest.extraction.engine import ExtractionEngine
from zenless_harvest.extraction.merge import merge_records, to_domain_record
from zenless_harvest.extraction.models import ExtractedBangboo, ExtractedRecord, ExtractedWeapon
from zenless_harvest.extraction.payload import RawPayload
from zenless_harvest.extraction.weapons import WeaponExtractor, merge_weapons, to_weapon_record
from zenless_harvest.utils.logging import get_logger, with_entry_context
from zenless_harvest.utils.retry import item_retrying
from zenless_harvest.validation.security import ALLOWED_EXTENSIONS, SecurityValidator, sanitize_filename
from zenless_harvest.validation.validator import BangbooValidator, RecordValidator, ValidationResult, WeaponValidator

SleepFn = Callable[[float], Awaitable[None]]


class RecordFetcher(Protocol):
    """Anything that can fetch an entry page in a given language."""

    async def fetch(self, remote_id: int, language: Language) -> RawPayload:
        """Fetch one payload.

        Raises:
            NetworkError: If the payload cannot be retrieved
        """
        ...


@dataclass
class _AttemptResult:
    record: HarvestRecord | None = None
    asset: AssetRecord | None = None
    bytes_written: int = 0
    warnings: list[str] = field(default_factory=list)


class ItemPipeline:
    """Retry wrapper shared by all item pipelines.

    Subclasses implement ``_attempt``; ``process`` never raises for item-level
    problems, which is what lets a window keep going past a failing entry.
    """

    name = "item"

    def __init__(self, config: HarvestConfig, sleep: SleepFn | None = None):
        self.config = config
        self._sleep = sleep
        self.logger = get_logger(__name__)

    async def process(self, entry: SourceEntry) -> ItemOutcome:
        retrying = item_retrying(
            retry_attempts=self.config.retry_attempts,
            base_delay_ms=self.config.base_retry_delay_ms,
            cap_ms=self.config.retry_delay_cap_ms,
            retry_extraction_errors=self.config.retry_extraction_errors,
            sleep=self._sleep,
        )
        with with_entry_context(entry.id, pipeline=self.name) as logger:
            attempts = 0
            try:
                async for attempt in retrying:
                    with attempt:
                        attempts = attempt.retry_state.attempt_number
                        result = await self._attempt(entry)
            except HarvestError as e:
                logger.warning("Entry failed", attempts=attempts, error=str(e), error_type=type(e).__name__)
                return ItemOutcome(
                    entry_id=entry.id,
                    success=False,
                    error=str(e),
                    error_type=type(e).__name__,
                    attempts_used=attempts,
                )
            except Exception as e:
                logger.error("Unexpected error processing entry", attempts=attempts, error=str(e), exc_info=True)
                return ItemOutcome(
                    entry_id=entry.id,
                    success=False,
                    error=f"unexpected error: {e}",
                    error_type=type(e).__name__,
                    attempts_used=attempts,
                )

            logger.info("Entry processed", attempts=attempts)
        return ItemOutcome(
            entry_id=entry.id,
            success=True,
            record=result.record,
            asset=result.asset,
            attempts_used=attempts,
            bytes_written=result.bytes_written,
            warnings=result.warnings,
        )

    async def _attempt(self, entry: SourceEntry) -> _AttemptResult:
        raise NotImplementedError


class LocalizedPipeline(ItemPipeline):
    """Base for pipelines that fetch an entry in every supported language.

    The primary language is required: its fetch or extraction failing fails the
    attempt. Any other language that cannot be fetched or extracted is None and
    falls back to the primary when merging.
    """

    def __init__(
        self,
        config: HarvestConfig,
        fetcher: RecordFetcher,
        primary: Language = PRIMARY_LANGUAGE,
        sleep: SleepFn | None = None,
    ):
        super().__init__(config, sleep=sleep)
        self.fetcher = fetcher
        self.primary = primary

    def _extract(self, payload: RawPayload, language: Language, entry: SourceEntry) -> Any:
        """Extract one language; raises ExtractionError when required structure is missing."""
        raise NotImplementedError

    async def _extract_languages(self, entry: SourceEntry) -> dict[Language, Any]:
        # The primary language is required; a failure here is retried
        primary_payload = await self.fetcher.fetch(entry.remote_id, self.primary)
        records: dict[Language, Any] = {self.primary: self._extract(primary_payload, self.primary, entry)}

        for language in SUPPORTED_LANGUAGES:
            if language != self.primary:
                records[language] = await self._secondary(entry, language)
        return records

    async def _secondary(self, entry: SourceEntry, language: Language) -> Any:
        """A secondary language that cannot be fetched or extracted falls back to the primary."""
        try:
            payload = await self.fetcher.fetch(entry.remote_id, language)
        except NetworkError as e:
            self.logger.warning(
                "Secondary language unavailable, falling back", entry_id=entry.id, language=language.value, error=str(e)
            )
            return None

        try:
            return self._extract(payload, language, entry)
        except ExtractionError as e:
            self.logger.warning(
                "Secondary language extraction failed, falling back",
                entry_id=entry.id,
                language=language.value,
                error=str(e),
            )
            return None

    def _require_valid(self, validation: ValidationResult, entry: SourceEntry) -> None:
        if not validation.is_valid:
            raise ValidationError(validation.message, entry.id)


class CharacterPipeline(LocalizedPipeline):
    """fetch (every language) → extract → merge → validate → DomainRecord."""

    name = "characters"

    def __init__(
        self,
        config: HarvestConfig,
        fetcher: RecordFetcher,
        engine: ExtractionEngine | None = None,
        validator: RecordValidator | None = None,
        primary: Language = PRIMARY_LANGUAGE,
        sleep: SleepFn | None = None,
    ):
        super().__init__(config, fetcher, primary=primary, sleep=sleep)
        self.engine = engine or ExtractionEngine(max_description_length=config.max_description_length)
        self.validator = validator or RecordValidator()

    def _extract(self, payload: RawPayload, language: Language, entry: SourceEntry) -> ExtractedRecord:
        return self.engine.extract(payload, language, entry.id).unwrap()

    async def _attempt(self, entry: SourceEntry) -> _AttemptResult:
        records = await self._extract_languages(entry)
        merged = merge_records(records, primary=self.primary)
        validation = self.validator.validate(merged)
        self._require_valid(validation, entry)
        return _AttemptResult(record=to_domain_record(merged), warnings=merged.warnings + validation.warnings)


class WeaponPipeline(LocalizedPipeline):
    """fetch (every language) → extract → merge → validate → WeaponRecord."""

    name = "weapons"

    def __init__(
        self,
        config: HarvestConfig,
        fetcher: RecordFetcher,
        extractor: WeaponExtractor | None = None,
        validator: WeaponValidator | None = None,
        primary: Language = PRIMARY_LANGUAGE,
        sleep: SleepFn | None = None,
    ):
        super().__init__(config, fetcher, primary=primary, sleep=sleep)
        self.extractor = extractor or WeaponExtractor(max_description_length=config.max_description_length)
        self.validator = validator or WeaponValidator()

    def _extract(self, payload: RawPayload, language: Language, entry: SourceEntry) -> ExtractedWeapon:
        return self.extractor.extract(payload, language, entry.id)

    async def _attempt(self, entry: SourceEntry) -> _AttemptResult:
        merged = merge_weapons(await self._extract_languages(entry), primary=self.primary)
        validation = self.validator.validate(merged)
        self._require_valid(validation, entry)
        return _AttemptResult(record=to_weapon_record(merged), warnings=merged.warnings + validation.warnings)


class BangbooPipeline(LocalizedPipeline):
    """fetch (every language) → extract → merge → validate → BangbooRecord."""

    name = "bangboo"

    def __init__(
        self,
        config: HarvestConfig,
        fetcher: RecordFetcher,
        extractor: BangbooExtractor | None = None,
        validator: BangbooValidator | None = None,
        primary: Language = PRIMARY_LANGUAGE,
        sleep: SleepFn | None = None,
    ):
        super().__init__(config, fetcher, primary=primary, sleep=sleep)
        self.extractor = extractor or BangbooExtractor()
        self.validator = validator or BangbooValidator()

    def _extract(self, payload: RawPayload, language: Language, entry: SourceEntry) -> ExtractedBangboo:
        return self.extractor.extract(payload, language, entry.id)

    async def _attempt(self, entry: SourceEntry) -> _AttemptResult:
        merged = merge_bangboo(await self._extract_languages(entry), primary=self.primary)
        validation = self.validator.validate(merged)
        self._require_valid(validation, entry)
        return _AttemptResult(record=to_bangboo_record(merged), warnings=merged.warnings + validation.warnings)


class AssetPipeline(ItemPipeline):
    """icon URL (from the source list or a fetched page) → security policy → download + verify."""

    name = "icons"

    def __init__(
        self,
        config: HarvestConfig,
        fetcher: RecordFetcher,
        downloader: AssetDownloader,
        security: SecurityValidator | None = None,
        engine: ExtractionEngine | None = None,
        sleep: SleepFn | None = None,
    ):
        super().__init__(config, sleep=sleep)
        self.fetcher = fetcher
        self.downloader = downloader
        self.security = security or SecurityValidator(config.allowed_hosts, config.max_asset_size_bytes)
        self.engine = engine or ExtractionEngine(max_description_length=config.max_description_length)
        self.asset_root = Path(config.asset_root)

    def destination_for(self, entry: SourceEntry, icon_url: str) -> Path:
        suffix = PurePosixPath(urlsplit(icon_url).path).suffix.lower()
        if suffix not in ALLOWED_EXTENSIONS:
            suffix = ".png"
        return self.asset_root / f"{sanitize_filename(entry.id)}{suffix}"

    async def _attempt(self, entry: SourceEntry) -> _AttemptResult:
        icon_url = entry.icon_url or await self._page_icon_url(entry)
        destination = self.destination_for(entry, icon_url)

        # Policy violations raise SecurityError and are never retried
        self.security.require_all(icon_url, destination, self.asset_root, entry.id)

        existing = self._existing_size(destination)
        if self.config.skip_existing and existing:
            self.logger.info("Icon already present, skipping", entry_id=entry.id, path=str(destination))
            asset = AssetRecord(
                id=entry.id, icon_url=icon_url, local_path=destination, file_size=existing, skipped=True
            )
            return _AttemptResult(asset=asset)

        result = await self.downloader.download(icon_url, destination)
        if not result.success:
            raise _DOWNLOAD_ERRORS.get(result.error_type or "", NetworkError)(result.error or "download failed", entry.id)

        asset = AssetRecord(id=entry.id, icon_url=icon_url, local_path=destination, file_size=result.bytes_written)
        return _AttemptResult(asset=asset, bytes_written=result.bytes_written)

    async def _page_icon_url(self, entry: SourceEntry) -> str:
        payload = await self.fetcher.fetch(entry.remote_id, PRIMARY_LANGUAGE)
        return self.engine.extract_icon_url(payload, entry.id)

    def _existing_size(self, destination: Path) -> int:
        try:
            return destination.stat().st_size if destination.is_file() else 0
        except OSError as e:
            raise FileSystemError(f"cannot inspect {destination}: {e}") from e


_DOWNLOAD_ERRORS: dict[str, type[HarvestError]] = {
    "NetworkError": NetworkError,
    "ValidationError": ValidationError,
    "FileSystemError": FileSystemError,
    "ExtractionError": ExtractionError,
}
