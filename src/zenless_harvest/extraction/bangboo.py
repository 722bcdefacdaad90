# ABOUTME: Bangboo extraction, merging and mapping from entry-page payloads to BangbooRecords
# ABOUTME: Shares the character ascension table; adds faction lists and the extra ability text

from zenless_harvest.core.models import (
    CHECKPOINT_LEVELS,
    PRIMARY_LANGUAGE,
    BangbooRecord,
    Language,
)
from zenless_harvest.errors import ExtractionError
from zenless_harvest.extraction.engine import (
    BASE_INFO_COMPONENT,
    KeyLookup,
    extract_level_table,
    parse_release_version,
)
from zenless_harvest.extraction.merge import build_attributes, localize, localized_text, prefixed_warnings
from zenless_harvest.extraction.models import ExtractedBangboo, MergedBangboo
from zenless_harvest.extraction.payload import InfoEntry, RawPayload, clean_text, decode_component, decode_list
from zenless_harvest.extraction.vocabulary import (
    BANGBOO_FILTER_KEYS,
    BANGBOO_TALENT_COMPONENTS,
    KEY_VOCABULARY,
    STAT_NAMES,
    map_rarity,
    map_stats,
    resolve_faction_id,
)
from zenless_harvest.utils.logging import get_logger

logger = get_logger(__name__)


class BangbooExtractor:
    """Extracts one bangboo page in one language."""

    def extract(self, payload: RawPayload, language: Language, entry_id: str) -> ExtractedBangboo:
        """Extract the bangboo page in ``language``.

        Raises:
            ExtractionError: If the page, its attribute or its ascension rows are missing
        """
        page = payload.page
        if page is None:
            raise ExtractionError("payload has no page data", entry_id)

        warnings: list[str] = []
        base_info = decode_list(payload.find_component(BASE_INFO_COMPONENT), InfoEntry) or []
        lookup = KeyLookup(base_info, KEY_VOCABULARY[language], entry_id)

        stats_raw = payload.filter_value(BANGBOO_FILTER_KEYS["stats"]) or lookup.first("stats")
        if not stats_raw:
            raise ExtractionError(f"bangboo attribute missing for {language.value}", entry_id)

        return ExtractedBangboo(
            id=entry_id,
            language=language,
            name=page.name.strip() or lookup.first("name") or "",
            stats_raw=stats_raw,
            rarity_raw=payload.filter_value(BANGBOO_FILTER_KEYS["rarity"]) or lookup.first("rarity"),
            faction_ids=self._factions(payload, lookup, entry_id, warnings),
            release_version=parse_release_version(lookup.first("version")),
            extra_ability=self._extra_ability(payload),
            level_table=extract_level_table(payload, CHECKPOINT_LEVELS, STAT_NAMES[language], entry_id, warnings),
            warnings=warnings,
        )

    def _factions(self, payload: RawPayload, lookup: KeyLookup, entry_id: str, warnings: list[str]) -> list[int]:
        """Every resolvable faction, deduplicated in page order; unknown names are dropped."""
        names = payload.filter_values(BANGBOO_FILTER_KEYS["faction"]) or lookup.all("faction")
        faction_ids: list[int] = []
        for name in names:
            faction_id = resolve_faction_id(name)
            if faction_id is None:
                warnings.append(f"unknown faction {name!r}")
                logger.warning("Unknown faction name", entry_id=entry_id, faction=name)
            elif faction_id not in faction_ids:
                faction_ids.append(faction_id)
        return faction_ids

    def _extra_ability(self, payload: RawPayload) -> str:
        """First description in the talent list, preferring a child entry's text."""
        for component_id in BANGBOO_TALENT_COMPONENTS:
            decoded = decode_component(payload.find_component(component_id))
            if decoded is None or not isinstance(decoded.get("list"), list):
                continue
            for item in decoded["list"]:
                if not isinstance(item, dict):
                    continue
                for child in item.get("children") or []:
                    if isinstance(child, dict) and isinstance(child.get("desc"), str):
                        return clean_text(child["desc"])
                if isinstance(item.get("desc"), str):
                    return clean_text(item["desc"])
        return ""


def merge_bangboo(
    records: dict[Language, ExtractedBangboo | None], primary: Language = PRIMARY_LANGUAGE
) -> MergedBangboo:
    """Combine per-language bangboo; everything except the name comes from ``primary``.

    Raises:
        ValueError: If the primary-language bangboo is missing
    """
    base = records.get(primary)
    if base is None:
        raise ValueError(f"primary language {primary.value} record is required for merging")

    fallback_languages: list[Language] = []
    return MergedBangboo(
        id=base.id,
        name=localize(records, primary, "name", fallback_languages),
        stats_raw=base.stats_raw,
        rarity_raw=base.rarity_raw,
        faction_ids=base.faction_ids,
        release_version=base.release_version,
        extra_ability=base.extra_ability,
        level_table=base.level_table,
        warnings=prefixed_warnings(records, primary),
        fallback_languages=fallback_languages,
    )


def to_bangboo_record(merged: MergedBangboo) -> BangbooRecord:
    """Map a validated bangboo.

    Raises:
        ValueError: If the bangboo was not validated first and a field cannot be mapped
    """
    stats = map_stats(merged.stats_raw)
    if stats is None:
        raise ValueError(f"bangboo {merged.id} has unmapped fields; validate it before mapping")

    return BangbooRecord(
        id=merged.id,
        name=localized_text(merged.name),
        stats=stats,
        rarity=map_rarity(merged.rarity_raw),
        faction=merged.faction_ids,
        release_version=merged.release_version,
        extra_ability=merged.extra_ability,
        attr=build_attributes(merged.level_table),
    )
