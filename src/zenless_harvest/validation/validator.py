# ABOUTME: Structural and vocabulary checks on merged bilingual records
# ABOUTME: Never raises; every violation is collected into a ValidationResult

from pydantic import BaseModel, Field

from zenless_harvest.core.models import (
    CHECKPOINT_LEVELS,
    FACTION_ID_RANGE,
    LEVEL_SCALING_STATS,
    PRIMARY_LANGUAGE,
    SUPPORTED_LANGUAGES,
    WEAPON_LEVELS,
    Language,
    Stats,
)
from zenless_harvest.extraction.models import MergedBangboo, MergedRecord, MergedWeapon
from zenless_harvest.extraction.vocabulary import map_attack_type, map_rarity, map_specialty, map_stats
from zenless_harvest.utils.logging import get_logger

logger = get_logger(__name__)


class ValidationResult(BaseModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def message(self) -> str:
        return "; ".join(self.errors)


def check_level_table(
    table: dict[int, dict[str, float]],
    levels: tuple[int, ...],
    required_stats: tuple[str, ...],
    errors: list[str],
    warnings: list[str],
) -> None:
    """Every required stat must have a real value at each of ``levels``, in order."""
    present_levels = list(table)
    expected = len(levels)

    for stat in required_stats:
        actual = sum(1 for level in present_levels if stat in table[level])
        if actual != expected:
            errors.append(f"attr.{stat}: expected {expected} checkpoint values, got {actual}")

    ordered = [level for level in levels if level in table]
    if present_levels != ordered:
        errors.append(f"attr: checkpoint levels {present_levels} are not in ascending checkpoint order")

    for level, stats in table.items():
        for stat, value in stats.items():
            if value < 0:
                warnings.append(f"attr.{stat}@{level}: negative value {value}")


def _check_names(names: dict[Language, str], field_name: str, errors: list[str]) -> None:
    for language in SUPPORTED_LANGUAGES:
        if not names.get(language, "").strip():
            errors.append(f"{field_name}.{language.value}: must not be empty")


def _result(entry_id: str, errors: list[str], warnings: list[str]) -> ValidationResult:
    if errors:
        logger.warning("Record failed validation", entry_id=entry_id, errors=errors)
    elif warnings:
        logger.debug("Record validated with warnings", entry_id=entry_id, warnings=warnings)
    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


class RecordValidator:
    """Checks a merged record before it becomes a DomainRecord.

    Only merged records are accepted: language fallbacks must already have
    been applied, so an empty localized field here is a real defect.
    """

    def validate(self, record: MergedRecord) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []

        if not record.id.strip():
            errors.append("id: must not be empty")

        self._check_localized(record, errors)
        self._check_level_table(record, errors, warnings)
        self._check_vocabularies(record, errors)

        if record.faction_id is None:
            errors.append("faction: missing or unknown faction")
        elif not FACTION_ID_RANGE[0] <= record.faction_id <= FACTION_ID_RANGE[1]:
            errors.append(
                f"faction: id {record.faction_id} outside {FACTION_ID_RANGE[0]}..{FACTION_ID_RANGE[1]}"
            )

        if record.release_version < 0:
            errors.append(f"releaseVersion: {record.release_version} must not be negative")

        return _result(record.id, errors, warnings)

    def _check_localized(self, record: MergedRecord, errors: list[str]) -> None:
        _check_names(record.name, "name", errors)
        _check_names(record.full_name, "fullName", errors)

    def _check_level_table(self, record: MergedRecord, errors: list[str], warnings: list[str]) -> None:
        check_level_table(record.level_table, CHECKPOINT_LEVELS, LEVEL_SCALING_STATS, errors, warnings)
        if CHECKPOINT_LEVELS[0] not in record.level_table:
            errors.append("attr: level 1 row is required for fixed stats")

    def _check_vocabularies(self, record: MergedRecord, errors: list[str]) -> None:
        if map_rarity(record.rarity_raw) is None:
            errors.append(f"rarity: {record.rarity_raw!r} is not one of A, S")
        if map_specialty(record.specialty_raw) is None:
            errors.append(f"specialty: {record.specialty_raw!r} is not a known specialty")
        if map_stats(record.stats_raw) is None:
            errors.append(f"stats: {record.stats_raw!r} is not a known attribute")

        if not record.attack_types_raw:
            errors.append("attackType: at least one attack type is required")
        for raw in record.attack_types_raw:
            if map_attack_type(raw) is None:
                errors.append(f"attackType: {raw!r} is not a known attack type")

        if len(set(record.attribute_tags)) != len(record.attribute_tags):
            errors.append("attributeTags: tags must not repeat")
        for tag in record.attribute_tags:
            if not isinstance(tag, Stats):
                errors.append(f"attributeTags: {tag!r} is not a known attribute")


class WeaponValidator:
    """Checks a merged W-Engine before it becomes a WeaponRecord."""

    def validate(self, record: MergedWeapon) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []

        if not record.id.strip().isdigit():
            errors.append(f"id: {record.id!r} must be a numeric page id")
        _check_names(record.name, "name", errors)

        if map_rarity(record.rarity_raw) is None:
            errors.append(f"rarity: {record.rarity_raw!r} is not one of A, S")
        # Specialty is optional, but a value that is present must be known
        if record.specialty_raw and map_specialty(record.specialty_raw) is None:
            errors.append(f"specialty: {record.specialty_raw!r} is not a known specialty")

        required = tuple(dict.fromkeys((record.base_stat, record.advanced_stat)))
        check_level_table(record.level_table, WEAPON_LEVELS, required, errors, warnings)

        if not record.skill_desc.get(PRIMARY_LANGUAGE, "").strip():
            warnings.append("equipmentSkillDesc: empty skill description")

        return _result(record.id, errors, warnings)


class BangbooValidator:
    """Checks a merged bangboo before it becomes a BangbooRecord."""

    def validate(self, record: MergedBangboo) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []

        if not record.id.strip():
            errors.append("id: must not be empty")
        _check_names(record.name, "name", errors)

        if map_stats(record.stats_raw) is None:
            errors.append(f"stats: {record.stats_raw!r} is not a known attribute")
        if record.rarity_raw and map_rarity(record.rarity_raw) is None:
            errors.append(f"rarity: {record.rarity_raw!r} is not one of A, S")

        check_level_table(record.level_table, CHECKPOINT_LEVELS, LEVEL_SCALING_STATS, errors, warnings)
        if CHECKPOINT_LEVELS[0] not in record.level_table:
            errors.append("attr: level 1 row is required for fixed stats")

        for faction_id in record.faction_ids:
            if not FACTION_ID_RANGE[0] <= faction_id <= FACTION_ID_RANGE[1]:
                errors.append(f"faction: id {faction_id} outside {FACTION_ID_RANGE[0]}..{FACTION_ID_RANGE[1]}")
        if record.release_version < 0:
            errors.append(f"releaseVersion: {record.release_version} must not be negative")

        return _result(record.id, errors, warnings)
