# ABOUTME: Merges per-language extracted records and maps validated merges to their final records
# ABOUTME: Localized fields fall back to the primary language; numeric data comes from the primary only

from typing import Any

from zenless_harvest.core.models import (
    CHECKPOINT_LEVELS,
    PRIMARY_LANGUAGE,
    SUPPORTED_LANGUAGES,
    Attributes,
    DomainRecord,
    Language,
    LocalizedText,
)
from zenless_harvest.extraction.models import ExtractedRecord, MergedRecord
from zenless_harvest.extraction.vocabulary import map_attack_type, map_rarity, map_specialty, map_stats
from zenless_harvest.utils.logging import get_logger

logger = get_logger(__name__)


def merge_records(
    records: dict[Language, ExtractedRecord | None], primary: Language = PRIMARY_LANGUAGE
) -> MergedRecord:
    """Combine per-language records into one bilingual record.

    Args:
        records: Extracted record per language; None where the payload was
            unavailable or could not be extracted
        primary: Canonical language supplying numeric tables, faction and
            every fallback value

    Raises:
        ValueError: If the primary-language record is missing
    """
    base = records.get(primary)
    if base is None:
        raise ValueError(f"primary language {primary.value} record is required for merging")

    names: dict[Language, str] = {}
    full_names: dict[Language, str] = {}
    fallback_languages: list[Language] = []
    for language in SUPPORTED_LANGUAGES:
        record = records.get(language)
        name = record.localized_name.strip() if record else ""
        full_name = record.full_name.strip() if record else ""
        if language != primary and not (name and full_name):
            fallback_languages.append(language)
            logger.info(
                "Using primary language fallback",
                entry_id=base.id,
                language=language.value,
                reason="payload unavailable" if record is None else "empty localized field",
            )
        names[language] = name or base.localized_name
        full_names[language] = full_name or base.full_name or base.localized_name

    tags = set(base.attribute_tags)
    warnings = list(base.warnings)
    for language, record in records.items():
        if record is None or language == primary:
            continue
        tags |= record.attribute_tags
        warnings.extend(f"{language.value}: {warning}" for warning in record.warnings)

    return MergedRecord(
        id=base.id,
        name=names,
        full_name=full_names,
        faction_id=base.faction_id,
        rarity_raw=base.rarity_raw,
        specialty_raw=base.specialty_raw,
        stats_raw=base.stats_raw,
        attack_types_raw=list(base.attack_types_raw),
        release_version=base.release_version,
        level_table=base.level_table,
        attribute_tags=sorted(tags, key=lambda tag: tag.value),
        assist_type=base.assist_type,
        warnings=warnings,
        fallback_languages=fallback_languages,
    )


def to_domain_record(merged: MergedRecord) -> DomainRecord:
    """Map a merged record that passed validation to its final form.

    Raises:
        ValueError: If the record was not validated first and a field cannot be mapped
    """
    specialty = map_specialty(merged.specialty_raw)
    stats = map_stats(merged.stats_raw)
    rarity = map_rarity(merged.rarity_raw)
    attack_types = [map_attack_type(raw) for raw in merged.attack_types_raw]
    if specialty is None or stats is None or rarity is None or merged.faction_id is None or None in attack_types:
        raise ValueError(f"record {merged.id} has unmapped fields; validate it before mapping")

    return DomainRecord(
        id=merged.id,
        name=LocalizedText(ja=merged.name[Language.JA], en=merged.name[Language.EN]),
        full_name=LocalizedText(ja=merged.full_name[Language.JA], en=merged.full_name[Language.EN]),
        specialty=specialty,
        stats=stats,
        attack_type=list(dict.fromkeys(attack_types)),
        faction=merged.faction_id,
        rarity=rarity,
        release_version=merged.release_version,
        assist_type=merged.assist_type,
        attribute_tags=merged.attribute_tags,
        attr=build_attributes(merged.level_table),
    )


def build_attributes(table: dict[int, dict[str, float]]) -> Attributes:
    """Checkpoint arrays for hp, atk and def plus the fixed stats read at level 1.

    The table must have passed validation; fixed stats absent at level 1 are 0.
    """
    level_one = table[CHECKPOINT_LEVELS[0]]

    def scaling(stat: str) -> list[int]:
        return [round(table[level][stat]) for level in CHECKPOINT_LEVELS]

    return Attributes(
        hp=scaling("hp"),
        atk=scaling("atk"),
        def_=scaling("def"),
        impact=round(level_one.get("impact", 0.0)),
        crit_rate=level_one.get("crit_rate", 0.0),
        crit_dmg=level_one.get("crit_dmg", 0.0),
        anomaly_mastery=round(level_one.get("anomaly_mastery", 0.0)),
        anomaly_proficiency=round(level_one.get("anomaly_proficiency", 0.0)),
        pen_ratio=level_one.get("pen_ratio", 0.0),
        energy=level_one.get("energy", 0.0),
    )


def localize(
    records: dict[Language, Any],
    primary: Language,
    field_name: str,
    fallback_languages: list[Language],
) -> dict[Language, str]:
    """One value of a text field per supported language.

    Languages whose record is missing or whose value is blank take the primary
    language's value and are added to ``fallback_languages``.
    """
    base_value = getattr(records[primary], field_name).strip()
    values: dict[Language, str] = {}
    for language in SUPPORTED_LANGUAGES:
        record = records.get(language)
        value = getattr(record, field_name).strip() if record is not None else ""
        if not value and language != primary:
            if language not in fallback_languages:
                fallback_languages.append(language)
            logger.info(
                "Using primary language fallback",
                entry_id=records[primary].id,
                language=language.value,
                field=field_name,
            )
        values[language] = value or base_value
    return values


def prefixed_warnings(records: dict[Language, Any], primary: Language) -> list[str]:
    """Primary-language warnings followed by every other language's, prefixed with its code."""
    warnings = list(records[primary].warnings)
    for language, record in records.items():
        if record is not None and language != primary:
            warnings.extend(f"{language.value}: {warning}" for warning in record.warnings)
    return warnings


def localized_text(values: dict[Language, str]) -> LocalizedText:
    return LocalizedText(ja=values[Language.JA], en=values[Language.EN])
