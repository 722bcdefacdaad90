# ABOUTME: Intermediate records produced while extracting and merging one entry
# ABOUTME: Extracted* models are per language, Merged* models are bilingual; none is persisted

from pydantic import BaseModel, ConfigDict, Field

from zenless_harvest.core.models import AssistType, Language, Stats
from zenless_harvest.errors import ExtractionError


class ExtractedRecord(BaseModel):
    """Data extracted from a single-language payload."""

    id: str
    language: Language
    localized_name: str
    full_name: str = ""
    faction_name: str | None = None
    faction_id: int | None = None
    rarity_raw: str | None = None
    specialty_raw: str | None = None
    stats_raw: str | None = None
    attack_types_raw: list[str] = Field(default_factory=list)
    release_version: float = 0.0
    # Checkpoint level -> canonical stat key -> value, in ascending level order
    level_table: dict[int, dict[str, float]] = Field(default_factory=dict)
    attribute_tags: set[Stats] = Field(default_factory=set)
    assist_type: AssistType | None = None
    icon_url: str | None = None
    warnings: list[str] = Field(default_factory=list)


class MergedRecord(BaseModel):
    """Per-language records combined into one bilingual record."""

    id: str
    name: dict[Language, str]
    full_name: dict[Language, str]
    faction_id: int | None = None
    rarity_raw: str | None = None
    specialty_raw: str | None = None
    stats_raw: str | None = None
    attack_types_raw: list[str] = Field(default_factory=list)
    release_version: float = 0.0
    level_table: dict[int, dict[str, float]] = Field(default_factory=dict)
    attribute_tags: list[Stats] = Field(default_factory=list)
    assist_type: AssistType | None = None
    warnings: list[str] = Field(default_factory=list)
    # Languages whose localized fields were copied from the primary language
    fallback_languages: list[Language] = Field(default_factory=list)


class ExtractionResult(BaseModel):
    """Outcome of extracting one payload: a record, or the extraction error."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    record: ExtractedRecord | None = None
    error: ExtractionError | None = None

    @classmethod
    def ok(cls, record: ExtractedRecord) -> "ExtractionResult":
        return cls(success=True, record=record)

    @classmethod
    def failed(cls, error: ExtractionError) -> "ExtractionResult":
        return cls(success=False, error=error)

    def unwrap(self) -> ExtractedRecord:
        """Return the record or raise the carried ExtractionError."""
        if self.record is None:
            raise self.error or ExtractionError("extraction produced no record")
        return self.record


class ExtractedWeapon(BaseModel):
    """W-Engine data extracted from a single-language payload."""

    id: str
    language: Language
    name: str
    skill_name: str = ""
    skill_desc: str = ""
    rarity_raw: str | None = None
    specialty_raw: str | None = None
    agent_id: str | None = None
    # Canonical stat keys of the main and secondary stat
    base_stat: str
    advanced_stat: str
    level_table: dict[int, dict[str, float]] = Field(default_factory=dict)
    stat_tags: set[Stats] = Field(default_factory=set)
    warnings: list[str] = Field(default_factory=list)


class MergedWeapon(BaseModel):
    id: str
    name: dict[Language, str]
    skill_name: dict[Language, str]
    skill_desc: dict[Language, str]
    rarity_raw: str | None = None
    specialty_raw: str | None = None
    agent_id: str | None = None
    base_stat: str
    advanced_stat: str
    level_table: dict[int, dict[str, float]] = Field(default_factory=dict)
    stat_tags: list[Stats] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    fallback_languages: list[Language] = Field(default_factory=list)


class ExtractedBangboo(BaseModel):
    """Bangboo data extracted from a single-language payload."""

    id: str
    language: Language
    name: str
    stats_raw: str | None = None
    rarity_raw: str | None = None
    faction_ids: list[int] = Field(default_factory=list)
    release_version: float = 0.0
    extra_ability: str = ""
    level_table: dict[int, dict[str, float]] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)


class MergedBangboo(BaseModel):
    id: str
    name: dict[Language, str]
    stats_raw: str | None = None
    rarity_raw: str | None = None
    faction_ids: list[int] = Field(default_factory=list)
    release_version: float = 0.0
    extra_ability: str = ""
    level_table: dict[int, dict[str, float]] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    fallback_languages: list[Language] = Field(default_factory=list)
