# ABOUTME: Tests for multi-language merging and mapping to the final record
# ABOUTME: Secondary-language fallback, canonical numeric data and camelCase serialization

import pytest

from zenless_harvest.core.models import CHECKPOINT_LEVELS, AttackType, Language, Rarity, Specialty, Stats
from zenless_harvest.extraction.merge import merge_records, to_domain_record
from zenless_harvest.extraction.models import ExtractedRecord

HP = [600, 1500, 2500, 3500, 4500, 5500, 6500]


def _level_table(hp_values=HP) -> dict[int, dict[str, float]]:
    table = {}
    for level, hp in zip(CHECKPOINT_LEVELS, hp_values):
        table[level] = {
            "hp": float(hp),
            "atk": 90.0 + 10 * level,
            "def": 45.0 + 5 * level,
            "impact": 93.0,
            "crit_rate": 5.0,
            "crit_dmg": 50.0,
            "anomaly_mastery": 94.0,
            "anomaly_proficiency": 93.0,
            "pen_ratio": 0.0,
            "energy": 1.2,
        }
    return table


def _record(language: Language, name: str, **overrides) -> ExtractedRecord:
    values = {
        "id": "ellen",
        "language": language,
        "localized_name": name,
        "full_name": f"{name} full",
        "faction_id": 2,
        "rarity_raw": "S",
        "specialty_raw": "強攻" if language == Language.JA else "Attack",
        "stats_raw": "氷属性" if language == Language.JA else "Ice",
        "attack_types_raw": ["斬撃"] if language == Language.JA else ["Slash"],
        "release_version": 1.0,
        "level_table": _level_table(),
        "attribute_tags": {Stats.ICE},
    }
    values.update(overrides)
    return ExtractedRecord(**values)


class TestMergeRecords:
    def test_both_languages_present(self):
        merged = merge_records({Language.JA: _record(Language.JA, "エレン"), Language.EN: _record(Language.EN, "Ellen")})

        assert merged.name == {Language.JA: "エレン", Language.EN: "Ellen"}
        assert merged.fallback_languages == []

    def test_secondary_unavailable_falls_back_to_primary(self):
        merged = merge_records({Language.JA: _record(Language.JA, "エレン"), Language.EN: None})

        assert merged.name[Language.EN] == "エレン"
        assert merged.full_name[Language.EN] == "エレン full"
        assert merged.fallback_languages == [Language.EN]

    def test_empty_secondary_name_falls_back(self):
        merged = merge_records({Language.JA: _record(Language.JA, "エレン"), Language.EN: _record(Language.EN, "  ")})

        assert merged.name[Language.EN] == "エレン"
        assert Language.EN in merged.fallback_languages

    def test_numeric_data_from_primary_only(self):
        secondary = _record(Language.EN, "Ellen", faction_id=9, level_table=_level_table([1] * 7))

        merged = merge_records({Language.JA: _record(Language.JA, "エレン"), Language.EN: secondary})

        assert merged.faction_id == 2
        assert merged.level_table[60]["hp"] == 6500
        assert merged.specialty_raw == "強攻"

    def test_tags_are_a_sorted_union(self):
        secondary = _record(Language.EN, "Ellen", attribute_tags={Stats.ICE, Stats.FIRE})

        merged = merge_records({Language.JA: _record(Language.JA, "エレン"), Language.EN: secondary})

        assert merged.attribute_tags == [Stats.FIRE, Stats.ICE]

    def test_secondary_warnings_are_prefixed(self):
        secondary = _record(Language.EN, "Ellen", warnings=["checkpoint 30 missing from level table"])

        merged = merge_records({Language.JA: _record(Language.JA, "エレン"), Language.EN: secondary})

        assert merged.warnings == ["en: checkpoint 30 missing from level table"]

    def test_primary_required(self):
        with pytest.raises(ValueError):
            merge_records({Language.EN: _record(Language.EN, "Ellen")})


class TestToDomainRecord:
    def test_mapping(self):
        merged = merge_records({Language.JA: _record(Language.JA, "エレン"), Language.EN: _record(Language.EN, "Ellen")})

        record = to_domain_record(merged)

        assert record.name.ja == "エレン"
        assert record.name.en == "Ellen"
        assert record.specialty == Specialty.ATTACK
        assert record.stats == Stats.ICE
        assert record.rarity == Rarity.S
        assert record.attack_type == [AttackType.SLASH]
        assert record.attr.hp == HP
        assert record.attr.def_ == [50, 95, 145, 195, 245, 295, 345]
        assert record.attr.impact == 93
        assert record.attr.crit_rate == 5.0

    def test_serializes_with_camel_case_aliases(self):
        merged = merge_records({Language.JA: _record(Language.JA, "エレン"), Language.EN: None})

        data = to_domain_record(merged).model_dump(mode="json", by_alias=True)

        assert data["fullName"] == {"ja": "エレン full", "en": "エレン full"}
        assert data["attackType"] == ["slash"]
        assert data["releaseVersion"] == 1.0
        assert set(data["attr"]) >= {"hp", "atk", "def", "critRate", "critDmg", "penRatio", "anomalyMastery"}

    def test_absent_fixed_stats_map_to_zero(self):
        table = _level_table()
        del table[1]["impact"]
        del table[1]["pen_ratio"]
        merged = merge_records({Language.JA: _record(Language.JA, "エレン", level_table=table), Language.EN: None})

        record = to_domain_record(merged)

        assert record.attr.impact == 0
        assert record.attr.pen_ratio == 0.0
        assert record.attr.crit_dmg == 50.0

    def test_unmapped_fields_rejected(self):
        merged = merge_records({Language.JA: _record(Language.JA, "エレン", rarity_raw="B"), Language.EN: None})

        with pytest.raises(ValueError):
            to_domain_record(merged)
