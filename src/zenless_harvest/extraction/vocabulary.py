# ABOUTME: Fixed vocabularies mapping localized wiki labels to canonical values
# ABOUTME: Keys per language for lookups, stat names, categorical enums, factions and tag trigger phrases

from zenless_harvest.core.models import AssistType, AttackType, Language, Rarity, Specialty, Stats

# Semantic key -> literal baseInfo keys, per language. Order inside a tuple does
# not matter; the first entry in the payload list that matches any of them wins.
KEY_VOCABULARY: dict[Language, dict[str, tuple[str, ...]]] = {
    Language.JA: {
        "name": ("名前", "エージェント名"),
        "full_name": ("フルネーム", "本名"),
        "faction": ("陣営", "所属"),
        "rarity": ("レア度",),
        "specialty": ("特性",),
        "stats": ("属性",),
        "attack_type": ("攻撃タイプ",),
        "version": ("実装バージョン",),
    },
    Language.EN: {
        "name": ("Name", "Agent Name"),
        "full_name": ("Full Name",),
        "faction": ("Faction", "Affiliation"),
        "rarity": ("Rarity",),
        "specialty": ("Specialty",),
        "stats": ("Attribute",),
        "attack_type": ("Attack Type",),
        "version": ("Release Version", "Version Released"),
    },
}

# Page filter keys used when the key lookup finds nothing
FILTER_KEYS: dict[str, str] = {
    "faction": "agent_faction",
    "rarity": "agent_rarity",
    "specialty": "agent_specialties",
    "stats": "agent_stats",
    "attack_type": "agent_attack_type",
}

REQUIRED_KEYS: tuple[str, ...] = ("name", "rarity", "specialty", "stats")

# Stat labels in the ascension table -> canonical stat key
STAT_NAMES: dict[Language, dict[str, str]] = {
    Language.JA: {
        "HP": "hp",
        "攻撃力": "atk",
        "防御力": "def",
        "衝撃力": "impact",
        "会心率": "crit_rate",
        "会心ダメージ": "crit_dmg",
        "異常マスタリー": "anomaly_mastery",
        "異常掌握": "anomaly_proficiency",
        "貫通率": "pen_ratio",
        "エネルギー自動回復": "energy",
    },
    Language.EN: {
        "HP": "hp",
        "ATK": "atk",
        "DEF": "def",
        "Impact": "impact",
        "CRIT Rate": "crit_rate",
        "CRIT DMG": "crit_dmg",
        "Anomaly Mastery": "anomaly_mastery",
        "Anomaly Proficiency": "anomaly_proficiency",
        "PEN Ratio": "pen_ratio",
        "Energy Regen": "energy",
    },
}

SPECIALTIES: dict[str, Specialty] = {
    "撃破": Specialty.STUN,
    "強攻": Specialty.ATTACK,
    "異常": Specialty.ANOMALY,
    "支援": Specialty.SUPPORT,
    "防護": Specialty.DEFENSE,
    "命破": Specialty.RUPTURE,
    "Stun": Specialty.STUN,
    "Attack": Specialty.ATTACK,
    "Anomaly": Specialty.ANOMALY,
    "Support": Specialty.SUPPORT,
    "Defense": Specialty.DEFENSE,
    "Rupture": Specialty.RUPTURE,
}

STATS: dict[str, Stats] = {
    "氷属性": Stats.ICE,
    "炎属性": Stats.FIRE,
    "電気属性": Stats.ELECTRIC,
    "物理属性": Stats.PHYSICAL,
    "エーテル属性": Stats.ETHER,
    "霜烈属性": Stats.FROST_ATTRIBUTE,
    "玄墨属性": Stats.AURIC_INK,
    "Ice": Stats.ICE,
    "Fire": Stats.FIRE,
    "Electric": Stats.ELECTRIC,
    "Physical": Stats.PHYSICAL,
    "Ether": Stats.ETHER,
    "Frost": Stats.FROST_ATTRIBUTE,
    "Auric Ink": Stats.AURIC_INK,
}

ATTACK_TYPES: dict[str, AttackType] = {
    "打撃": AttackType.STRIKE,
    "斬撃": AttackType.SLASH,
    "刺突": AttackType.PIERCE,
    "Strike": AttackType.STRIKE,
    "Slash": AttackType.SLASH,
    "Pierce": AttackType.PIERCE,
}

RARITIES: dict[str, Rarity] = {"S": Rarity.S, "A": Rarity.A}

# W-Engine pages: filters, baseInfo keys and ascension stat labels
WEAPON_FILTER_KEYS: dict[str, str] = {
    "rarity": "w_engine_rarity",
    "specialty": "filter_key_13",
}

WEAPON_KEY_VOCABULARY: dict[Language, dict[str, tuple[str, ...]]] = {
    Language.JA: {
        "name": ("名前",),
        "agent": ("該当エージェント",),
        "base_stat": ("基礎ステータス",),
        "advanced_stat": ("上級ステータス",),
    },
    Language.EN: {
        "name": ("Name",),
        "agent": ("Matching Agent", "Exclusive Agent"),
        "base_stat": ("Base Stats", "Base Stat"),
        "advanced_stat": ("Advanced Stats", "Advanced Stat"),
    },
}

# Weapon rows label their main stat with a "base" prefix
WEAPON_BASE_PREFIXES: tuple[str, ...] = ("基礎", "Base ")

WEAPON_STAT_NAMES: dict[Language, dict[str, str]] = {
    Language.JA: {**STAT_NAMES[Language.JA], "基礎攻撃力": "atk"},
    Language.EN: {**STAT_NAMES[Language.EN], "Base ATK": "atk"},
}

WEAPON_DEFAULT_BASE_STAT = "atk"
WEAPON_DEFAULT_ADVANCED_STAT = "crit_rate"

EQUIPMENT_SKILL_COMPONENT = "equipment_skill"

# Rarity B weapons are listed on the wiki but not harvested
EXCLUDED_WEAPON_RARITIES: tuple[str, ...] = ("B",)

# Bangboo pages share the agent filters; the attribute falls back to baseInfo
BANGBOO_FILTER_KEYS: dict[str, str] = {
    "faction": "agent_faction",
    "rarity": "agent_rarity",
    "stats": "agent_stats",
}

BANGBOO_TALENT_COMPONENTS: tuple[str, ...] = ("talent", "skill")

# Faction id -> (ja, en)
FACTIONS: dict[int, tuple[str, str]] = {
    1: ("邪兎屋", "Cunning Hares"),
    2: ("ヴィクトリア家政", "Victoria Housekeeping Co."),
    3: ("白祇重工", "Belobog Heavy Industries"),
    4: ("防衛軍・オボルス小隊", "Defense Force - Obol Squad"),
    5: ("対ホロウ特別行動部第六課", "Hollow Special Operations Section 6"),
    6: ("特務捜査班", "Criminal Investigation Special Response Team"),
    7: ("カリュドーンの子", "Sons of Calydon"),
    8: ("スターズ・オブ・リラ", "Stars of Lyra"),
    9: ("防衛軍・シルバー小隊", "Defense Force - Silver Squad"),
    10: ("モッキンバード", "Mockingbird"),
    11: ("雲嶽山", "Yunkui Summit"),
    12: ("怪啖屋", "Spook Shack"),
}

# One trigger phrase per attribute tag, matched case-insensitively in free text
TAG_TRIGGERS: dict[Language, dict[str, Stats]] = {
    Language.JA: {
        "氷属性": Stats.ICE,
        "炎属性": Stats.FIRE,
        "電気属性": Stats.ELECTRIC,
        "物理属性": Stats.PHYSICAL,
        "エーテル属性": Stats.ETHER,
        "霜烈属性": Stats.FROST_ATTRIBUTE,
        "玄墨属性": Stats.AURIC_INK,
    },
    Language.EN: {
        "ice dmg": Stats.ICE,
        "fire dmg": Stats.FIRE,
        "electric dmg": Stats.ELECTRIC,
        "physical dmg": Stats.PHYSICAL,
        "ether dmg": Stats.ETHER,
        "frost dmg": Stats.FROST_ATTRIBUTE,
        "auric ink dmg": Stats.AURIC_INK,
    },
}

# Phrases that look like attribute mentions; any not covered by TAG_TRIGGERS is reported
TAG_CANDIDATE_PATTERNS: dict[Language, str] = {
    Language.JA: r"(?:[ァ-ヶー]+|[一-龯]{1,2})属性",
}

ASSIST_TRIGGERS: dict[str, AssistType] = {
    "パリィ支援": AssistType.DEFENSIVE,
    "defensive assist": AssistType.DEFENSIVE,
    "回避支援": AssistType.EVASIVE,
    "evasive assist": AssistType.EVASIVE,
}

# Wiki module holding the talent list, matched by substring of the module name
SKILL_MODULE_NAMES: tuple[str, ...] = ("スキル", "Skills")
ASSIST_SKILL_MARKERS: tuple[str, ...] = ("支援", "Support")


def resolve_faction_id(name: str) -> int | None:
    """Look up a faction id from its Japanese or English name."""
    normalized = name.strip().casefold()
    for faction_id, (ja, en) in FACTIONS.items():
        if normalized in (ja.casefold(), en.casefold()):
            return faction_id
    return None


def _normalize_label(label: str) -> str:
    return label.strip()


def map_specialty(raw: str | None) -> Specialty | None:
    return SPECIALTIES.get(_normalize_label(raw)) if raw else None


def map_stats(raw: str | None) -> Stats | None:
    if not raw:
        return None
    label = _normalize_label(raw)
    # The attribute suffix is optional in some payloads
    return STATS.get(label) or STATS.get(f"{label}属性")


def map_attack_type(raw: str | None) -> AttackType | None:
    return ATTACK_TYPES.get(_normalize_label(raw)) if raw else None


def map_rarity(raw: str | None) -> Rarity | None:
    return RARITIES.get(_normalize_label(raw).upper()) if raw else None


def map_weapon_stat(label: str | None, language: Language = Language.JA) -> str | None:
    """Canonical stat key for a weapon stat label, with or without its "base" prefix."""
    if not label:
        return None
    label = _normalize_label(label)
    names = WEAPON_STAT_NAMES[language]
    if label in names:
        return names[label]
    for prefix in WEAPON_BASE_PREFIXES:
        if label.startswith(prefix):
            return names.get(label[len(prefix) :].strip())
    return None
