# ABOUTME: Extraction engine turning one single-language wiki payload into an ExtractedRecord
# ABOUTME: Key lookup, checkpoint stat tables, free-text tags, release version and assist type

import re
from collections.abc import Callable

from zenless_harvest.core.models import (
    CHECKPOINT_LEVELS,
    LEVEL_SCALING_STATS,
    AssistType,
    Language,
    Stats,
)
from zenless_harvest.errors import ExtractionError
from zenless_harvest.extraction.models import ExtractedRecord, ExtractionResult
from zenless_harvest.extraction.payload import (
    InfoEntry,
    LevelEntry,
    LevelStatRow,
    RawPayload,
    decode_component,
    decode_list,
    strip_html,
    unwrap_embedded_value,
)
from zenless_harvest.extraction.tags import DEFAULT_MAX_LENGTH, TagExtractor
from zenless_harvest.extraction.vocabulary import (
    ASSIST_SKILL_MARKERS,
    ASSIST_TRIGGERS,
    FILTER_KEYS,
    KEY_VOCABULARY,
    REQUIRED_KEYS,
    SKILL_MODULE_NAMES,
    STAT_NAMES,
    TAG_CANDIDATE_PATTERNS,
    TAG_TRIGGERS,
    resolve_faction_id,
)
from zenless_harvest.utils.logging import get_logger

logger = get_logger(__name__)

BASE_INFO_COMPONENT = "baseInfo"
ASCENSION_COMPONENT = "ascension"
TALENT_COMPONENT = "agent_talent"

_VERSION_PATTERN = re.compile(r"Ver\.(\d+\.\d+)")
_NUMBER_DECORATIONS = re.compile(r"[%,，\s]")
_PLACEHOLDERS = {"", "-", "—", "–"}


def parse_stat_value(raw: str, warnings: list[str] | None = None, context: str = "") -> float:
    """Coerce a decorated numeric string such as ``"1,234"`` or ``"5%"``.

    Placeholders (``-``) are 0. Anything else that does not parse is also 0 and
    appends a warning.
    """
    cleaned = _NUMBER_DECORATIONS.sub("", raw or "")
    if cleaned in _PLACEHOLDERS:
        return 0.0
    try:
        return float(cleaned)
    except ValueError:
        message = f"unparsable value {raw!r}{f' for {context}' if context else ''}, using 0"
        logger.warning("Unparsable stat value", value=raw, context=context)
        if warnings is not None:
            warnings.append(message)
        return 0.0


def select_checkpoint_value(level_key: str, values: list[str]) -> str:
    """Pick the post-ascension value of a ``[before, after]`` pair.

    Level 1 rows may only carry the pre-ascension value; it is used when the
    second element is missing or a placeholder.
    """
    if len(values) >= 2:
        after = values[1]
        if level_key == "1" and after.strip() in _PLACEHOLDERS:
            return values[0]
        return after
    if len(values) == 1:
        return values[0]
    return ""


def parse_release_version(raw: str | None) -> float:
    if not raw:
        return 0.0
    match = _VERSION_PATTERN.search(strip_html(raw))
    if not match:
        logger.debug("No version pattern found", value=raw[:100])
        return 0.0
    return float(match.group(1))


def select_after_value(level_key: str, values: list[str]) -> str | None:
    """Post-ascension value of a weapon row, or None when the row leaves it blank."""
    if len(values) < 2 or values[1].strip() in _PLACEHOLDERS:
        return None
    return values[1]


def extract_level_table(
    payload: RawPayload,
    levels: tuple[int, ...],
    stat_names: dict[str, str],
    record_id: str,
    warnings: list[str],
    required_stats: tuple[str, ...] = LEVEL_SCALING_STATS,
    select: Callable[[str, list[str]], str | None] = select_checkpoint_value,
) -> dict[int, dict[str, float]]:
    """Read the ascension rows at ``levels`` into level -> stat key -> value.

    Only stats present in a row are stored. Missing rows and rows lacking one
    of ``required_stats`` are reported as warnings; deciding whether that makes
    the record invalid is left to validation.

    Raises:
        ExtractionError: If the ascension component is absent
    """
    entries = decode_list(payload.find_component(ASCENSION_COMPONENT), LevelEntry)
    if entries is None:
        raise ExtractionError("ascension component with level rows is missing", record_id)

    rows: dict[str, LevelStatRow] = {}
    for entry in entries:
        # First row for a level label wins
        if entry.key not in rows:
            rows[entry.key] = LevelStatRow.from_entry(entry)

    table: dict[int, dict[str, float]] = {}
    for level in levels:
        row = rows.get(str(level))
        if row is None:
            warnings.append(f"checkpoint {level} missing from level table")
            logger.warning("Checkpoint level missing", entry_id=record_id, level=level)
            continue

        stats: dict[str, float] = {}
        for label, pair in row.stat_entries.items():
            stat_key = stat_names.get(label.strip())
            if stat_key is None:
                continue
            raw_value = select(row.level_key, pair)
            if raw_value is None:
                continue
            stats[stat_key] = parse_stat_value(raw_value, warnings, context=f"{stat_key}@{level}")

        absent = [stat for stat in required_stats if stat not in stats]
        if absent:
            warnings.append(f"checkpoint {level} has no value for {', '.join(absent)}")
            logger.warning("Checkpoint stat missing", entry_id=record_id, level=level, stats=absent)
        table[level] = stats

    return table


class ExtractionEngine:
    """Converts raw payloads into per-language extracted records.

    The caller always states the payload language; the engine never guesses it.
    """

    def __init__(self, max_description_length: int = DEFAULT_MAX_LENGTH):
        self.max_description_length = max_description_length
        self._tag_extractors = {
            language: TagExtractor(
                triggers,
                max_length=max_description_length,
                candidate_pattern=TAG_CANDIDATE_PATTERNS.get(language),
            )
            for language, triggers in TAG_TRIGGERS.items()
        }
        self._assist_extractor = TagExtractor(ASSIST_TRIGGERS, max_length=max_description_length)

    def extract(self, payload: RawPayload, language: Language, entry_id: str | None = None) -> ExtractionResult:
        """Extract a character record; never raises for payload problems."""
        try:
            record = self._extract(payload, language, entry_id)
        except ExtractionError as e:
            logger.warning("Extraction failed", entry_id=entry_id, language=language.value, error=e.details)
            return ExtractionResult.failed(e)
        return ExtractionResult.ok(record)

    def extract_icon_url(self, payload: RawPayload, entry_id: str | None = None) -> str:
        """Icon URL of an entry page.

        Raises:
            ExtractionError: If the page or its icon URL is missing
        """
        page = payload.page
        if page is None:
            raise ExtractionError("payload has no page data", entry_id)
        if not page.icon_url or not page.icon_url.strip():
            raise ExtractionError("page has no icon_url", entry_id)
        return page.icon_url.strip()

    def _extract(self, payload: RawPayload, language: Language, entry_id: str | None) -> ExtractedRecord:
        page = payload.page
        if page is None:
            raise ExtractionError("payload has no page data", entry_id)
        record_id = entry_id or page.id

        warnings: list[str] = []
        base_info = decode_list(payload.find_component(BASE_INFO_COMPONENT), InfoEntry)
        if base_info is None:
            logger.debug("baseInfo component absent", entry_id=record_id, language=language.value)
            base_info = []

        lookup = KeyLookup(base_info, KEY_VOCABULARY[language], record_id)

        name = lookup.first("name") or page.name.strip()
        values = {
            "name": name,
            "rarity": lookup.first("rarity") or payload.filter_value(FILTER_KEYS["rarity"]),
            "specialty": lookup.first("specialty") or payload.filter_value(FILTER_KEYS["specialty"]),
            "stats": lookup.first("stats") or payload.filter_value(FILTER_KEYS["stats"]),
        }
        missing = [key for key in REQUIRED_KEYS if not values.get(key)]
        if missing:
            raise ExtractionError(f"required keys missing for {language.value}: {', '.join(missing)}", record_id)

        faction_name = lookup.first("faction") or payload.filter_value(FILTER_KEYS["faction"])
        faction_id = resolve_faction_id(faction_name) if faction_name else None
        if faction_name and faction_id is None:
            warnings.append(f"unknown faction {faction_name!r}")
            logger.warning("Unknown faction name", entry_id=record_id, faction=faction_name)

        attack_types = lookup.all("attack_type") or payload.filter_values(FILTER_KEYS["attack_type"])

        level_table = extract_level_table(payload, CHECKPOINT_LEVELS, STAT_NAMES[language], record_id, warnings)
        tags, assist_type = self._extract_talent_text(payload, language, record_id, warnings)

        return ExtractedRecord(
            id=record_id,
            language=language,
            localized_name=name,
            full_name=lookup.first("full_name") or name,
            faction_name=faction_name,
            faction_id=faction_id,
            rarity_raw=values["rarity"],
            specialty_raw=values["specialty"],
            stats_raw=values["stats"],
            attack_types_raw=attack_types,
            release_version=parse_release_version(lookup.first("version")),
            level_table=level_table,
            attribute_tags=tags,
            assist_type=assist_type,
            icon_url=page.icon_url,
            warnings=warnings,
        )

    def _extract_talent_text(
        self, payload: RawPayload, language: Language, record_id: str, warnings: list[str]
    ) -> tuple[set[Stats], AssistType | None]:
        talents = self._talent_entries(payload)
        if not talents:
            return set(), None

        description = "\n".join(
            strip_html(str(item.get("desc", ""))) for item in talents if isinstance(item.get("desc"), str)
        )
        tags: set[Stats] = set()
        extractor = self._tag_extractors.get(language)
        if extractor is not None:
            match = extractor.extract(description)
            tags = match.tags
            warnings.extend(match.warnings)

        return tags, self._assist_type(talents, record_id)

    def _talent_entries(self, payload: RawPayload) -> list[dict]:
        page = payload.page
        if page is None:
            return []
        for module in page.modules:
            if not any(marker in module.name for marker in SKILL_MODULE_NAMES):
                continue
            for component in module.components:
                if component.component_id != TALENT_COMPONENT:
                    continue
                decoded = decode_component(component)
                if decoded and isinstance(decoded.get("list"), list):
                    return [item for item in decoded["list"] if isinstance(item, dict)]
        return []

    def _assist_type(self, talents: list[dict], record_id: str) -> AssistType | None:
        assist_skill = next(
            (
                item
                for item in talents
                if any(marker in str(item.get("title", "")) for marker in ASSIST_SKILL_MARKERS)
            ),
            None,
        )
        if assist_skill is None:
            return None

        labels = [str(child.get("title", "")) for child in assist_skill.get("children") or [] if isinstance(child, dict)]
        labels += [str(attr.get("key", "")) for attr in assist_skill.get("attributes") or [] if isinstance(attr, dict)]
        match = self._assist_extractor.extract("\n".join(labels))
        if not match.ordered:
            return None
        if len(match.ordered) > 1:
            logger.warning(
                "Several assist types found, using the first",
                entry_id=record_id,
                found=[assist.value for assist in match.ordered],
            )
        return match.ordered[0]


class KeyLookup:
    """First-match-wins lookup over a baseInfo entry list."""

    def __init__(self, entries: list[InfoEntry], vocabulary: dict[str, tuple[str, ...]], record_id: str):
        self.entries = entries
        self.vocabulary = vocabulary
        self.record_id = record_id

    def find(self, semantic_key: str) -> InfoEntry | None:
        literals = self.vocabulary.get(semantic_key, ())
        matches = [entry for entry in self.entries if entry.key.strip() in literals]
        if not matches:
            return None
        if len(matches) > 1:
            logger.debug(
                "Duplicate key in payload, keeping first",
                entry_id=self.record_id,
                key=semantic_key,
                occurrences=len(matches),
            )
        return matches[0]

    def all(self, semantic_key: str) -> list[str]:
        entry = self.find(semantic_key)
        if entry is None:
            return []
        names: list[str] = []
        for item in entry.items:
            names.extend(unwrap_embedded_value(item))
        return names

    def first(self, semantic_key: str) -> str | None:
        if semantic_key == "version":
            # Version strings are parsed from their HTML later
            entry = self.find(semantic_key)
            return entry.first if entry else None
        values = self.all(semantic_key)
        return values[0] if values else None
