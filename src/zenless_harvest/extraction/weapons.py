# ABOUTME: W-Engine extraction, merging and mapping from entry-page payloads to WeaponRecords
# ABOUTME: Ascension rows at levels 0..60, equipment skill text and base/advanced stat names

import re

from zenless_harvest.core.models import (
    PRIMARY_LANGUAGE,
    STAT_KEYS,
    WEAPON_LEVELS,
    Attribute,
    Language,
    Stats,
    WeaponAttributes,
    WeaponRecord,
)
from zenless_harvest.errors import ExtractionError
from zenless_harvest.extraction.engine import (
    BASE_INFO_COMPONENT,
    KeyLookup,
    extract_level_table,
    select_after_value,
)
from zenless_harvest.extraction.merge import localize, localized_text, prefixed_warnings
from zenless_harvest.extraction.models import ExtractedWeapon, MergedWeapon
from zenless_harvest.extraction.payload import InfoEntry, RawPayload, clean_text, decode_component, decode_list
from zenless_harvest.extraction.tags import DEFAULT_MAX_LENGTH, TagExtractor
from zenless_harvest.extraction.vocabulary import (
    EQUIPMENT_SKILL_COMPONENT,
    TAG_CANDIDATE_PATTERNS,
    TAG_TRIGGERS,
    WEAPON_DEFAULT_ADVANCED_STAT,
    WEAPON_DEFAULT_BASE_STAT,
    WEAPON_FILTER_KEYS,
    WEAPON_KEY_VOCABULARY,
    WEAPON_STAT_NAMES,
    map_rarity,
    map_specialty,
    map_weapon_stat,
)
from zenless_harvest.utils.logging import get_logger

logger = get_logger(__name__)

_AGENT_ID = re.compile(r'"ep_id"\s*:\s*(\d+)')


class WeaponExtractor:
    """Extracts one W-Engine page in one language."""

    def __init__(self, max_description_length: int = DEFAULT_MAX_LENGTH):
        self._tag_extractors = {
            language: TagExtractor(
                triggers, max_length=max_description_length, candidate_pattern=TAG_CANDIDATE_PATTERNS.get(language)
            )
            for language, triggers in TAG_TRIGGERS.items()
        }

    def extract(self, payload: RawPayload, language: Language, entry_id: str) -> ExtractedWeapon:
        """Extract the weapon page; stats absent from the ascension rows stay absent.

        Raises:
            ExtractionError: If the page or its ascension rows are missing
        """
        page = payload.page
        if page is None:
            raise ExtractionError("payload has no page data", entry_id)

        warnings: list[str] = []
        base_info = decode_list(payload.find_component(BASE_INFO_COMPONENT), InfoEntry) or []
        lookup = KeyLookup(base_info, WEAPON_KEY_VOCABULARY[language], entry_id)

        skill_name, skill_desc = self._equipment_skill(payload, entry_id, warnings)
        stat_tags: set[Stats] = set()
        extractor = self._tag_extractors.get(language)
        if extractor is not None and skill_desc:
            match = extractor.extract(skill_desc)
            stat_tags = match.tags
            warnings.extend(match.warnings)

        return ExtractedWeapon(
            id=entry_id,
            language=language,
            name=lookup.first("name") or page.name.strip(),
            skill_name=skill_name,
            skill_desc=skill_desc,
            rarity_raw=payload.filter_value(WEAPON_FILTER_KEYS["rarity"]),
            specialty_raw=payload.filter_value(WEAPON_FILTER_KEYS["specialty"]),
            agent_id=self._agent_id(lookup),
            base_stat=self._stat(lookup, "base_stat", WEAPON_DEFAULT_BASE_STAT, language, warnings),
            advanced_stat=self._stat(lookup, "advanced_stat", WEAPON_DEFAULT_ADVANCED_STAT, language, warnings),
            level_table=extract_level_table(
                payload,
                WEAPON_LEVELS,
                WEAPON_STAT_NAMES[language],
                entry_id,
                warnings,
                required_stats=(),
                select=select_after_value,
            ),
            stat_tags=stat_tags,
            warnings=warnings,
        )

    def _equipment_skill(self, payload: RawPayload, entry_id: str, warnings: list[str]) -> tuple[str, str]:
        decoded = decode_component(payload.find_component(EQUIPMENT_SKILL_COMPONENT))
        if decoded is None:
            logger.warning("Equipment skill component missing", entry_id=entry_id)
            warnings.append("equipment skill missing")
            return "", ""
        return clean_text(decoded.get("skill_name")), clean_text(decoded.get("skill_desc"))

    def _agent_id(self, lookup: KeyLookup) -> str | None:
        entry = lookup.find("agent")
        if entry is None:
            return None
        for item in entry.items:
            match = _AGENT_ID.search(item)
            if match:
                return match.group(1)
        return None

    def _stat(
        self, lookup: KeyLookup, semantic_key: str, default: str, language: Language, warnings: list[str]
    ) -> str:
        label = lookup.first(semantic_key)
        if label is None:
            return default
        stat_key = map_weapon_stat(label, language)
        if stat_key is None:
            warnings.append(f"unknown {semantic_key.replace('_', ' ')} {label!r}, using {default}")
            logger.warning("Unknown weapon stat name", entry_id=lookup.record_id, stat=label, default=default)
            return default
        return stat_key


def merge_weapons(
    records: dict[Language, ExtractedWeapon | None], primary: Language = PRIMARY_LANGUAGE
) -> MergedWeapon:
    """Combine per-language weapons; numeric data and stat names come from ``primary``.

    Raises:
        ValueError: If the primary-language weapon is missing
    """
    base = records.get(primary)
    if base is None:
        raise ValueError(f"primary language {primary.value} record is required for merging")

    fallback_languages: list[Language] = []
    tags = set(base.stat_tags)
    for record in records.values():
        if record is not None:
            tags |= record.stat_tags

    return MergedWeapon(
        id=base.id,
        name=localize(records, primary, "name", fallback_languages),
        skill_name=localize(records, primary, "skill_name", fallback_languages),
        skill_desc=localize(records, primary, "skill_desc", fallback_languages),
        rarity_raw=base.rarity_raw,
        specialty_raw=base.specialty_raw,
        agent_id=base.agent_id,
        base_stat=base.base_stat,
        advanced_stat=base.advanced_stat,
        level_table=base.level_table,
        stat_tags=sorted(tags, key=lambda tag: tag.value),
        warnings=prefixed_warnings(records, primary),
        fallback_languages=fallback_languages,
    )


def _number(value: float) -> int | float:
    return int(value) if float(value).is_integer() else value


def to_weapon_record(merged: MergedWeapon) -> WeaponRecord:
    """Map a validated weapon; stats the weapon lacks at a level are 0.

    Raises:
        ValueError: If the weapon was not validated first and a field cannot be mapped
    """
    rarity = map_rarity(merged.rarity_raw)
    if rarity is None or not merged.id.isdigit():
        raise ValueError(f"weapon {merged.id} has unmapped fields; validate it before mapping")

    table = merged.level_table
    values = {
        stat: [_number(table.get(level, {}).get(stat, 0.0)) for level in WEAPON_LEVELS] for stat in STAT_KEYS
    }
    return WeaponRecord(
        id=int(merged.id),
        name=localized_text(merged.name),
        equipment_skill_name=localized_text(merged.skill_name),
        equipment_skill_desc=localized_text(merged.skill_desc),
        rarity=rarity,
        specialty=map_specialty(merged.specialty_raw),
        stats=merged.stat_tags,
        agent_id=merged.agent_id,
        base_attr=Attribute.from_stat_key(merged.base_stat),
        advanced_attr=Attribute.from_stat_key(merged.advanced_stat),
        attr=WeaponAttributes(**values),
    )
