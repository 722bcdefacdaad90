# ABOUTME: Tests for bangboo extraction, merging and mapping to BangbooRecords
# ABOUTME: Faction lists, the extra ability text and the shared checkpoint stat table

import json

import pytest

from zenless_harvest.core.models import Language, Rarity, Stats
from zenless_harvest.errors import ExtractionError
from zenless_harvest.extraction.bangboo import BangbooExtractor, merge_bangboo, to_bangboo_record
from zenless_harvest.extraction.payload import RawPayload
from zenless_harvest.validation.validator import BangbooValidator

EXPECTED_HP = [600, 1500, 2500, 3500, 4500, 5500, 6500]


@pytest.fixture
def extractor():
    return BangbooExtractor()


def _extract(extractor, payload_dict, language=Language.JA, entry_id="amillion"):
    return extractor.extract(RawPayload.model_validate(payload_dict), language, entry_id)


def _merged(extractor, bangboo_payload_factory, **kwargs):
    return merge_bangboo(
        {
            Language.JA: _extract(extractor, bangboo_payload_factory("ja", **kwargs)),
            Language.EN: _extract(extractor, bangboo_payload_factory("en", **kwargs), Language.EN),
        }
    )


class TestBangbooExtractor:
    def test_japanese_page(self, extractor, bangboo_payload_factory):
        bangboo = _extract(extractor, bangboo_payload_factory("ja"))

        assert bangboo.name == "アマトウ"
        assert bangboo.stats_raw == "物理属性"
        assert bangboo.rarity_raw == "S"
        assert bangboo.faction_ids == [1]
        assert bangboo.release_version == 1.1
        assert bangboo.extra_ability == "邪兎屋のエージェントがいる場合、攻撃力が上昇する。"
        assert bangboo.level_table[60]["hp"] == 6500

    def test_factions_deduplicated_and_unknown_dropped(self, extractor, bangboo_payload_factory):
        payload = bangboo_payload_factory("ja", factions=["邪兎屋", "Cunning Hares", "白祇重工", "謎の組織"])

        bangboo = _extract(extractor, payload)

        assert bangboo.faction_ids == [1, 3]
        assert "unknown faction '謎の組織'" in bangboo.warnings

    def test_missing_attribute_raises(self, extractor, bangboo_payload_factory):
        with pytest.raises(ExtractionError, match="attribute missing"):
            _extract(extractor, bangboo_payload_factory("ja", stats=[]))

    def test_missing_hp_rows_warn(self, extractor, bangboo_payload_factory):
        bangboo = _extract(extractor, bangboo_payload_factory("ja", levels=["1", "10", "20"]))

        assert list(bangboo.level_table) == [1, 10, 20]
        assert "checkpoint 30 missing from level table" in bangboo.warnings


class TestBangbooRecord:
    def test_merged_record(self, extractor, bangboo_payload_factory):
        record = to_bangboo_record(_merged(extractor, bangboo_payload_factory))

        assert record.id == "amillion"
        assert record.name.ja == "アマトウ"
        assert record.name.en == "Amillion"
        assert record.stats == Stats.PHYSICAL
        assert record.rarity == Rarity.S
        assert record.faction == [1]
        assert record.attr.hp == EXPECTED_HP

    def test_serializes_with_camel_case_keys(self, extractor, bangboo_payload_factory):
        record = to_bangboo_record(_merged(extractor, bangboo_payload_factory))

        data = json.loads(record.model_dump_json(by_alias=True))

        assert data["releaseVersion"] == 1.1
        assert data["extraAbility"] == "邪兎屋のエージェントがいる場合、攻撃力が上昇する。"
        assert data["attr"]["critRate"] == 5.0


class TestBangbooValidator:
    def test_complete_bangboo_is_valid(self, extractor, bangboo_payload_factory):
        result = BangbooValidator().validate(_merged(extractor, bangboo_payload_factory))

        assert result.is_valid, result.errors

    def test_missing_rows_are_invalid(self, extractor, bangboo_payload_factory):
        merged = _merged(extractor, bangboo_payload_factory, levels=["1", "10", "20"])

        result = BangbooValidator().validate(merged)

        assert not result.is_valid
        assert "attr.hp: expected 7 checkpoint values, got 3" in result.errors

    def test_unknown_attribute_is_invalid(self, extractor, bangboo_payload_factory):
        merged = _merged(extractor, bangboo_payload_factory).model_copy(update={"stats_raw": "カオス属性"})

        result = BangbooValidator().validate(merged)

        assert "stats: 'カオス属性' is not a known attribute" in result.errors

    def test_faction_out_of_range_is_invalid(self, extractor, bangboo_payload_factory):
        merged = _merged(extractor, bangboo_payload_factory).model_copy(update={"faction_ids": [1, 13]})

        result = BangbooValidator().validate(merged)

        assert result.errors == ["faction: id 13 outside 1..12"]
