# ABOUTME: Tests for the character, weapon, bangboo and icon item pipelines
# ABOUTME: Fetchers are faked with AsyncMock; retry sleeps are recorded instead of awaited

from unittest.mock import AsyncMock

import pytest

from zenless_harvest.clients.downloader import DownloadResult
from zenless_harvest.core.models import Attribute, EntityKind, Language, SourceEntry, Stats
from zenless_harvest.core.pipeline import AssetPipeline, BangbooPipeline, CharacterPipeline, WeaponPipeline
from zenless_harvest.errors import NetworkError
from zenless_harvest.extraction.payload import RawPayload

ENTRY = SourceEntry(id="ellen", remote_id=28)
WEAPON_ENTRY = SourceEntry(
    id="1001",
    remote_id=1001,
    kind=EntityKind.WEAPON,
    icon_url="https://act-webstatic.hoyoverse.com/zzz/weapons/1001.png",
)
BANGBOO_ENTRY = SourceEntry(id="amillion", remote_id=911, kind=EntityKind.BANGBOO)


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def payloads(build, ja=None, en=None):
    """Fetcher side effect returning the payload for the requested language."""
    responses = {
        Language.JA: ja if ja is not None else RawPayload.model_validate(build("ja")),
        Language.EN: en if en is not None else RawPayload.model_validate(build("en")),
    }

    async def fetch(remote_id, language):
        response = responses[language]
        if isinstance(response, list):
            response = response.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    return fetch


@pytest.fixture
def sleep():
    return RecordingSleep()


class TestCharacterPipeline:
    @pytest.mark.asyncio
    async def test_success_merges_both_languages(self, fast_config, payload_factory, sleep):
        fetcher = AsyncMock()
        fetcher.fetch.side_effect = payloads(payload_factory)
        pipeline = CharacterPipeline(fast_config, fetcher, sleep=sleep)

        outcome = await pipeline.process(ENTRY)

        assert outcome.success, outcome.error
        assert outcome.attempts_used == 1
        assert outcome.record.name.ja == "エレン"
        assert outcome.record.name.en == "Ellen"
        assert outcome.record.faction == 2
        assert outcome.record.attribute_tags == [Stats.ICE]
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_secondary_network_failure_falls_back(self, fast_config, payload_factory, sleep):
        fetcher = AsyncMock()
        fetcher.fetch.side_effect = payloads(payload_factory, en=NetworkError("HTTP 502"))
        pipeline = CharacterPipeline(fast_config, fetcher, sleep=sleep)

        outcome = await pipeline.process(ENTRY)

        assert outcome.success
        assert outcome.record.name.en == "エレン"
        assert outcome.attempts_used == 1

    @pytest.mark.asyncio
    async def test_primary_network_failure_retried_then_succeeds(self, fast_config, payload_factory, sleep):
        ja = RawPayload.model_validate(payload_factory("ja"))
        fetcher = AsyncMock()
        fetcher.fetch.side_effect = payloads(payload_factory, ja=[NetworkError("reset"), NetworkError("reset"), ja])
        config = fast_config.model_copy(update={"base_retry_delay_ms": 100, "retry_delay_cap_ms": 150})
        pipeline = CharacterPipeline(config, fetcher, sleep=sleep)

        outcome = await pipeline.process(ENTRY)

        assert outcome.success
        assert outcome.attempts_used == 3
        assert sleep.delays == [0.1, 0.15]

    @pytest.mark.asyncio
    async def test_attempts_never_exceed_retries_plus_one(self, fast_config, payload_factory, sleep):
        fetcher = AsyncMock()
        fetcher.fetch.side_effect = NetworkError("down")
        pipeline = CharacterPipeline(fast_config.model_copy(update={"retry_attempts": 2}), fetcher, sleep=sleep)

        outcome = await pipeline.process(ENTRY)

        assert not outcome.success
        assert outcome.attempts_used == 3
        assert outcome.error_type == "NetworkError"
        assert fetcher.fetch.await_count == 3

    @pytest.mark.asyncio
    async def test_validation_failure_is_not_retried(self, fast_config, payload_factory, sleep):
        """Three of seven HP checkpoints present: the record is rejected on the first attempt."""
        partial = RawPayload.model_validate(payload_factory("ja", levels=["1", "10", "20"]))
        fetcher = AsyncMock()
        fetcher.fetch.side_effect = payloads(payload_factory, ja=partial)
        pipeline = CharacterPipeline(fast_config, fetcher, sleep=sleep)

        outcome = await pipeline.process(ENTRY)

        assert not outcome.success
        assert outcome.error_type == "ValidationError"
        assert "attr.hp: expected 7 checkpoint values, got 3" in outcome.error
        assert outcome.attempts_used == 1

    @pytest.mark.asyncio
    async def test_extraction_errors_retried_when_configured(self, fast_config, payload_factory, sleep):
        broken = RawPayload.model_validate(payload_factory("ja", include_ascension=False))
        fetcher = AsyncMock()
        fetcher.fetch.side_effect = payloads(payload_factory, ja=broken)

        retried = await CharacterPipeline(fast_config, fetcher, sleep=sleep).process(ENTRY)
        no_retry_config = fast_config.model_copy(update={"retry_extraction_errors": False})
        single = await CharacterPipeline(no_retry_config, fetcher, sleep=sleep).process(ENTRY)

        assert retried.attempts_used == fast_config.retry_attempts + 1
        assert single.attempts_used == 1
        assert single.error_type == "ExtractionError"

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_failed_outcome(self, fast_config, sleep):
        fetcher = AsyncMock()
        fetcher.fetch.side_effect = RuntimeError("boom")

        outcome = await CharacterPipeline(fast_config, fetcher, sleep=sleep).process(ENTRY)

        assert not outcome.success
        assert outcome.error_type == "RuntimeError"
        assert outcome.attempts_used == 1



class TestWeaponPipeline:
    @pytest.mark.asyncio
    async def test_success_merges_both_languages(self, fast_config, weapon_payload_factory, sleep):
        fetcher = AsyncMock()
        fetcher.fetch.side_effect = payloads(weapon_payload_factory)
        pipeline = WeaponPipeline(fast_config, fetcher, sleep=sleep)

        outcome = await pipeline.process(WEAPON_ENTRY)

        assert outcome.success, outcome.error
        assert outcome.record.id == 1001
        assert outcome.record.name.en == "Deep Sea Visitor"
        assert outcome.record.advanced_attr == Attribute.CRIT_RATE
        assert outcome.record.attr.atk[-1] == 648

    @pytest.mark.asyncio
    async def test_secondary_extraction_failure_falls_back(self, fast_config, weapon_payload_factory, sleep):
        broken = weapon_payload_factory("en")
        broken["data"]["page"]["modules"][0]["components"].pop(1)
        fetcher = AsyncMock()
        fetcher.fetch.side_effect = payloads(weapon_payload_factory, en=RawPayload.model_validate(broken))
        pipeline = WeaponPipeline(fast_config, fetcher, sleep=sleep)

        outcome = await pipeline.process(WEAPON_ENTRY)

        assert outcome.success
        assert outcome.record.name.en == "深海の訪問者"

    @pytest.mark.asyncio
    async def test_missing_level_row_is_rejected(self, fast_config, weapon_payload_factory, sleep):
        partial = RawPayload.model_validate(weapon_payload_factory("ja", levels=["0", "10", "20"]))
        fetcher = AsyncMock()
        fetcher.fetch.side_effect = payloads(weapon_payload_factory, ja=partial)
        pipeline = WeaponPipeline(fast_config, fetcher, sleep=sleep)

        outcome = await pipeline.process(WEAPON_ENTRY)

        assert not outcome.success
        assert outcome.error_type == "ValidationError"
        assert "attr.atk: expected 7 checkpoint values, got 3" in outcome.error
        assert outcome.attempts_used == 1


class TestBangbooPipeline:
    @pytest.mark.asyncio
    async def test_success_merges_both_languages(self, fast_config, bangboo_payload_factory, sleep):
        fetcher = AsyncMock()
        fetcher.fetch.side_effect = payloads(bangboo_payload_factory)
        pipeline = BangbooPipeline(fast_config, fetcher, sleep=sleep)

        outcome = await pipeline.process(BANGBOO_ENTRY)

        assert outcome.success, outcome.error
        assert outcome.record.name.ja == "アマトウ"
        assert outcome.record.name.en == "Amillion"
        assert outcome.record.stats == Stats.PHYSICAL
        assert outcome.record.faction == [1]

    @pytest.mark.asyncio
    async def test_missing_attribute_fails(self, fast_config, bangboo_payload_factory, sleep):
        broken = RawPayload.model_validate(bangboo_payload_factory("ja", stats=[]))
        fetcher = AsyncMock()
        fetcher.fetch.side_effect = payloads(bangboo_payload_factory, ja=broken)
        config = fast_config.model_copy(update={"retry_extraction_errors": False})

        outcome = await BangbooPipeline(config, fetcher, sleep=sleep).process(BANGBOO_ENTRY)

        assert not outcome.success
        assert outcome.error_type == "ExtractionError"
        assert outcome.attempts_used == 1

class TestAssetPipeline:
    @pytest.fixture
    def fetcher(self, payload_factory):
        mock = AsyncMock()
        mock.fetch.return_value = RawPayload.model_validate(payload_factory("ja"))
        return mock

    @pytest.mark.asyncio
    async def test_download_success(self, fast_config, fetcher, sleep):
        destination = fast_config.asset_root / "ellen.png"
        downloader = AsyncMock()
        downloader.download.return_value = DownloadResult(success=True, path=destination, bytes_written=512)
        pipeline = AssetPipeline(fast_config, fetcher, downloader, sleep=sleep)

        outcome = await pipeline.process(ENTRY)

        assert outcome.success
        assert outcome.bytes_written == 512
        assert outcome.asset.local_path == destination
        assert not outcome.asset.skipped
        downloader.download.assert_awaited_once_with(
            "https://act-webstatic.hoyoverse.com/zzz/icons/ellen.png", destination
        )

    @pytest.mark.asyncio
    async def test_existing_icon_skipped(self, fast_config, fetcher, sleep):
        fast_config.asset_root.mkdir(parents=True)
        (fast_config.asset_root / "ellen.png").write_bytes(b"x" * 42)
        downloader = AsyncMock()
        pipeline = AssetPipeline(fast_config, fetcher, downloader, sleep=sleep)

        outcome = await pipeline.process(ENTRY)

        assert outcome.success
        assert outcome.asset.skipped
        assert outcome.asset.file_size == 42
        assert outcome.bytes_written == 0
        downloader.download.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_disallowed_host_fails_once(self, fast_config, payload_factory, sleep):
        fetcher = AsyncMock()
        fetcher.fetch.return_value = RawPayload.model_validate(
            payload_factory("ja", icon_url="https://evil.example.com/ellen.png")
        )
        downloader = AsyncMock()
        pipeline = AssetPipeline(fast_config, fetcher, downloader, sleep=sleep)

        outcome = await pipeline.process(ENTRY)

        assert not outcome.success
        assert outcome.error_type == "SecurityError"
        assert outcome.attempts_used == 1
        downloader.download.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_verification_failure_not_retried(self, fast_config, fetcher, sleep):
        downloader = AsyncMock()
        downloader.download.return_value = DownloadResult(
            success=False,
            path=fast_config.asset_root / "ellen.png",
            error="content type 'text/html' is not an image",
            error_type="ValidationError",
        )
        pipeline = AssetPipeline(fast_config, fetcher, downloader, sleep=sleep)

        outcome = await pipeline.process(ENTRY)

        assert outcome.error_type == "ValidationError"
        assert outcome.attempts_used == 1

    @pytest.mark.asyncio
    async def test_network_failure_retried(self, fast_config, fetcher, sleep):
        downloader = AsyncMock()
        downloader.download.return_value = DownloadResult(
            success=False, path=fast_config.asset_root / "ellen.png", error="HTTP 503", error_type="NetworkError"
        )
        pipeline = AssetPipeline(fast_config, fetcher, downloader, sleep=sleep)

        outcome = await pipeline.process(ENTRY)

        assert outcome.error_type == "NetworkError"
        assert outcome.attempts_used == fast_config.retry_attempts + 1

    def test_destination_uses_sanitized_id_and_url_extension(self, fast_config, fetcher):
        pipeline = AssetPipeline(fast_config, fetcher, AsyncMock())
        entry = SourceEntry(id="../bang boo", remote_id=1)

        assert pipeline.destination_for(entry, "https://x/icon.WEBP").name == "bangboo.webp"
        assert pipeline.destination_for(entry, "https://x/icon").name == "bangboo.png"

    @pytest.mark.asyncio
    async def test_listed_icon_url_skips_fetch(self, fast_config, sleep):
        destination = fast_config.asset_root / "1001.png"
        fetcher = AsyncMock()
        downloader = AsyncMock()
        downloader.download.return_value = DownloadResult(success=True, path=destination, bytes_written=256)
        pipeline = AssetPipeline(fast_config, fetcher, downloader, sleep=sleep)

        outcome = await pipeline.process(WEAPON_ENTRY)

        assert outcome.success
        assert outcome.asset.local_path == destination
        downloader.download.assert_awaited_once_with(WEAPON_ENTRY.icon_url, destination)
        fetcher.fetch.assert_not_awaited()
