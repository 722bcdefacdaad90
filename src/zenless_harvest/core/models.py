# ABOUTME: Shared data models for source entries, final records, item outcomes and run summaries
# ABOUTME: Every model is pydantic; final records serialize with camelCase aliases for the generated dataset

from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

# Progression levels sampled for the level-scaling arrays
CHECKPOINT_LEVELS: tuple[int, ...] = (1, 10, 20, 30, 40, 50, 60)

# Canonical names of the ten stats held at every checkpoint
STAT_KEYS: tuple[str, ...] = (
    "hp",
    "atk",
    "def",
    "impact",
    "crit_rate",
    "crit_dmg",
    "anomaly_mastery",
    "anomaly_proficiency",
    "pen_ratio",
    "energy",
)

LEVEL_SCALING_STATS: tuple[str, ...] = ("hp", "atk", "def")

# Weapon (W-Engine) ascension rows start at level 0
WEAPON_LEVELS: tuple[int, ...] = (0, 10, 20, 30, 40, 50, 60)

FACTION_ID_RANGE = (1, 12)


class Language(str, Enum):
    """Languages fetched per entry. Japanese is the canonical source."""

    JA = "ja"
    EN = "en"

    @property
    def api_code(self) -> str:
        return {"ja": "ja-jp", "en": "en-us"}[self.value]


PRIMARY_LANGUAGE = Language.JA
SUPPORTED_LANGUAGES: tuple[Language, ...] = (Language.JA, Language.EN)


class EntityKind(str, Enum):
    CHARACTER = "character"
    BANGBOO = "bangboo"
    WEAPON = "weapon"


class Specialty(str, Enum):
    ATTACK = "attack"
    STUN = "stun"
    ANOMALY = "anomaly"
    SUPPORT = "support"
    DEFENSE = "defense"
    RUPTURE = "rupture"


class Stats(str, Enum):
    ETHER = "ether"
    FIRE = "fire"
    ICE = "ice"
    PHYSICAL = "physical"
    ELECTRIC = "electric"
    FROST_ATTRIBUTE = "frostAttribute"
    AURIC_INK = "auricInk"


class AttackType(str, Enum):
    SLASH = "slash"
    PIERCE = "pierce"
    STRIKE = "strike"


class Rarity(str, Enum):
    A = "A"
    S = "S"


class AssistType(str, Enum):
    DEFENSIVE = "defensive"
    EVASIVE = "evasive"


class Attribute(str, Enum):
    """A combat stat named in camelCase, as weapon base/advanced stats are reported."""

    HP = "hp"
    ATK = "atk"
    DEF = "def"
    IMPACT = "impact"
    CRIT_RATE = "critRate"
    CRIT_DMG = "critDmg"
    ANOMALY_MASTERY = "anomalyMastery"
    ANOMALY_PROFICIENCY = "anomalyProficiency"
    PEN_RATIO = "penRatio"
    ENERGY = "energy"

    @classmethod
    def from_stat_key(cls, stat_key: str) -> "Attribute":
        return cls(to_camel(stat_key))

    @property
    def stat_key(self) -> str:
        return STAT_KEYS[list(Attribute).index(self)]


class SourceEntry(BaseModel):
    """One enumerated entry to process. Created once by the enumerator and never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Stable slug used as record id and file name")
    remote_id: int = Field(..., description="Wiki entry page id")
    language_hint: Language | None = Field(default=None, description="Language the source list was written in")
    kind: EntityKind = Field(default=EntityKind.CHARACTER)
    wiki_url: str | None = Field(default=None, description="Link given in the source document")
    icon_url: str | None = Field(default=None, description="Icon URL when the source list already carries it")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LocalizedText(_CamelModel):
    """Text with one value per supported language."""

    ja: str
    en: str


class Attributes(_CamelModel):
    """Combat attributes of a character.

    ``hp``, ``atk`` and ``def`` hold one value per checkpoint level; the rest
    are fixed values read at level 1.
    """

    hp: list[int] = Field(..., min_length=7, max_length=7)
    atk: list[int] = Field(..., min_length=7, max_length=7)
    def_: list[int] = Field(..., min_length=7, max_length=7, alias="def")
    impact: int
    crit_rate: float
    crit_dmg: float
    anomaly_mastery: int
    anomaly_proficiency: int
    pen_ratio: float
    energy: float


class DomainRecord(_CamelModel):
    """Validated character record; the only artifact that survives a run."""

    id: str
    name: LocalizedText
    full_name: LocalizedText
    specialty: Specialty
    stats: Stats
    attack_type: list[AttackType]
    faction: int = Field(..., ge=FACTION_ID_RANGE[0], le=FACTION_ID_RANGE[1])
    rarity: Rarity
    release_version: float = 0.0
    assist_type: AssistType | None = None
    attribute_tags: list[Stats] = Field(default_factory=list)
    attr: Attributes


class WeaponAttributes(_CamelModel):
    """Weapon stats at each of the seven ascension levels; 0 where the weapon lacks the stat."""

    hp: list[int | float] = Field(..., min_length=7, max_length=7)
    atk: list[int | float] = Field(..., min_length=7, max_length=7)
    def_: list[int | float] = Field(..., min_length=7, max_length=7, alias="def")
    impact: list[int | float] = Field(..., min_length=7, max_length=7)
    crit_rate: list[int | float] = Field(..., min_length=7, max_length=7)
    crit_dmg: list[int | float] = Field(..., min_length=7, max_length=7)
    anomaly_mastery: list[int | float] = Field(..., min_length=7, max_length=7)
    anomaly_proficiency: list[int | float] = Field(..., min_length=7, max_length=7)
    pen_ratio: list[int | float] = Field(..., min_length=7, max_length=7)
    energy: list[int | float] = Field(..., min_length=7, max_length=7)


class WeaponRecord(_CamelModel):
    """Validated W-Engine record."""

    id: int
    name: LocalizedText
    equipment_skill_name: LocalizedText
    equipment_skill_desc: LocalizedText
    rarity: Rarity
    specialty: Specialty | None = None
    # Attributes named in the equipment skill text
    stats: list[Stats] = Field(default_factory=list)
    agent_id: str | None = None
    base_attr: Attribute
    advanced_attr: Attribute
    attr: WeaponAttributes


class BangbooRecord(_CamelModel):
    """Validated bangboo record."""

    id: str
    name: LocalizedText
    stats: Stats
    rarity: Rarity | None = None
    faction: list[int] = Field(default_factory=list)
    release_version: float = 0.0
    extra_ability: str = ""
    attr: Attributes


HarvestRecord = DomainRecord | WeaponRecord | BangbooRecord


class AssetRecord(_CamelModel):
    """A downloaded (or already present) icon for one entry."""

    id: str
    icon_url: str
    local_path: Path
    file_size: int
    skipped: bool = False
    downloaded_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ItemOutcome(BaseModel):
    """Result of running one entry through its item pipeline."""

    entry_id: str
    success: bool
    record: HarvestRecord | None = None
    asset: AssetRecord | None = None
    error: str | None = None
    error_type: str | None = None
    attempts_used: int = Field(default=0, ge=0)
    bytes_written: int = 0
    warnings: list[str] = Field(default_factory=list)


class FailureEntry(BaseModel):
    id: str
    error: str
    error_type: str | None = None


class RunSummary(BaseModel):
    """Counters describing a finished (or interrupted) run."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    total_bytes: int = 0
    elapsed_ms: int = 0
    interrupted: bool = False
    not_started: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success_rate(self) -> float:
        """Share of processed entries that succeeded (1.0 for an empty run)."""
        return self.succeeded / self.total if self.total else 1.0


class RunResult(BaseModel):
    """Everything a run hands back to its caller."""

    outcomes: list[ItemOutcome] = Field(default_factory=list)
    records: list[HarvestRecord] = Field(default_factory=list)
    assets: list[AssetRecord] = Field(default_factory=list)
    failures: list[FailureEntry] = Field(default_factory=list)
    summary: RunSummary = Field(default_factory=RunSummary)
    # Entries in the order they were submitted, kept so failures can be re-run
    entries: list[SourceEntry] = Field(default_factory=list)

    @property
    def failed_entries(self) -> list[SourceEntry]:
        failed_ids = {failure.id for failure in self.failures}
        return [entry for entry in self.entries if entry.id in failed_ids]


class ProgressUpdate(BaseModel):
    """Running totals handed to the progress callback after each window."""

    window_index: int
    window_count: int
    processed: int
    total: int
    succeeded: int
    failed: int
    elapsed_ms: int
    eta_ms: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def percent(self) -> float:
        return (self.processed / self.total * 100) if self.total else 100.0
