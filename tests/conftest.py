# ABOUTME: Shared fixtures building wiki payloads and fast run configurations
# ABOUTME: Payload dicts mirror the entry-page API shape, including string-encoded component data

import json
from typing import Any

import pytest

from zenless_harvest.config import HarvestConfig

CHECKPOINTS = ["1", "10", "20", "30", "40", "50", "60"]

STAT_LABELS = {
    "ja": ["HP", "攻撃力", "防御力", "衝撃力", "会心率", "会心ダメージ", "異常マスタリー", "異常掌握", "貫通率", "エネルギー自動回復"],
    "en": [
        "HP",
        "ATK",
        "DEF",
        "Impact",
        "CRIT Rate",
        "CRIT DMG",
        "Anomaly Mastery",
        "Anomaly Proficiency",
        "PEN Ratio",
        "Energy Regen",
    ],
}


def hp_at(level: int) -> int:
    return 500 + 100 * level


def atk_at(level: int) -> int:
    return 90 + 10 * level


def def_at(level: int) -> int:
    return 45 + 5 * level


def level_row(level_key: str, language: str = "ja") -> dict[str, Any]:
    level = int(level_key)
    hp, atk, defense = hp_at(level), atk_at(level), def_at(level)
    values = [
        [f"{hp - 10:,}", f"{hp:,}"],
        [str(atk - 5), str(atk)],
        [str(defense - 2), str(defense)],
        ["-", "93"],
        ["-", "5%"],
        ["-", "50%"],
        ["-", "94"],
        ["-", "93"],
        ["-", "0%"],
        ["-", "1.2"],
    ]
    if level_key == "1":
        # Level 1 lists the post-ascension value second as well
        values[3:] = [["93", "-"], ["5%", "-"], ["50%", "-"], ["94", "-"], ["93", "-"], ["0%", "-"], ["1.2", "-"]]
    return {
        "key": level_key,
        "combatList": [{"key": label, "values": pair} for label, pair in zip(STAT_LABELS[language], values)],
    }


def component(component_id: str, data: Any) -> dict[str, Any]:
    return {"component_id": component_id, "data": json.dumps(data, ensure_ascii=False)}


def build_payload(
    language: str = "ja",
    page_id: str = "28",
    name: str | None = None,
    levels: list[str] | None = None,
    base_info: list[dict[str, Any]] | None = None,
    filters: dict[str, list[str]] | None = None,
    talents: list[dict[str, Any]] | None = None,
    icon_url: str | None = "https://act-webstatic.hoyoverse.com/zzz/icons/ellen.png",
    include_ascension: bool = True,
    retcode: int = 0,
) -> dict[str, Any]:
    """Entry-page response for a character, in Japanese or English."""
    ja = language == "ja"
    name = name if name is not None else ("エレン" if ja else "Ellen")
    if base_info is None:
        base_info = [
            {"key": "名前" if ja else "Name", "value": [name]},
            {
                "key": "陣営" if ja else "Faction",
                "value": [
                    '$[{"ep_id":2,"name":"ヴィクトリア家政"}]$' if ja else "Victoria Housekeeping Co."
                ],
            },
            {"key": "実装バージョン" if ja else "Release Version", "value": ["<p>Ver.1.0</p>"]},
        ]
    if filters is None:
        filters = {
            "agent_rarity": ["S"],
            "agent_specialties": ["強攻" if ja else "Attack"],
            "agent_stats": ["氷属性" if ja else "Ice"],
            "agent_attack_type": ["斬撃" if ja else "Slash"],
        }
    if talents is None:
        talents = [
            {"title": "通常攻撃" if ja else "Basic Attack", "desc": "<p>敵に氷属性ダメージを与える。</p>" if ja else "Deals Ice DMG."},
            {
                "title": "支援スキル" if ja else "Support Skill",
                "children": [{"title": "パリィ支援：ワンシザー" if ja else "Defensive Assist: Scissor"}],
            },
        ]

    components = [component("baseInfo", {"list": base_info})]
    if include_ascension:
        rows = [level_row(level, language) for level in (levels if levels is not None else CHECKPOINTS)]
        components.append(component("ascension", {"list": rows}))

    page = {
        "id": page_id,
        "name": name,
        "icon_url": icon_url,
        "filter_values": {key: {"values": values} for key, values in filters.items()},
        "modules": [
            {"name": "ステータス" if ja else "Stats", "components": components},
            {"name": "エージェントスキル" if ja else "Agent Skills", "components": [component("agent_talent", {"list": talents})]},
        ],
    }
    return {"retcode": retcode, "message": "OK", "data": {"page": page}}


WEAPON_LEVEL_KEYS = ["0", "10", "20", "30", "40", "50", "60"]


def weapon_atk_at(level: int) -> int:
    return 48 + 10 * level


def weapon_row(level_key: str, language: str = "ja", advanced: str | None = None) -> dict[str, Any]:
    ja = language == "ja"
    level = int(level_key)
    advanced = advanced or ("会心率" if ja else "CRIT Rate")
    return {
        "key": level_key,
        "combatList": [
            {"key": "基礎攻撃力" if ja else "Base ATK", "values": ["-", str(weapon_atk_at(level))]},
            {"key": advanced, "values": ["-", f"{9.6 + level / 5:.1f}%"]},
        ],
    }


def build_weapon_payload(
    language: str = "ja",
    page_id: str = "1001",
    name: str | None = None,
    levels: list[str] | None = None,
    advanced_stat: str | None = None,
    rarity: str = "S",
    skill_desc: str | None = None,
) -> dict[str, Any]:
    """Entry-page response for a W-Engine, in Japanese or English."""
    ja = language == "ja"
    name = name if name is not None else ("深海の訪問者" if ja else "Deep Sea Visitor")
    advanced_stat = advanced_stat or ("会心率" if ja else "CRIT Rate")
    base_info = [
        {"key": "名前" if ja else "Name", "value": [name]},
        {"key": "該当エージェント" if ja else "Matching Agent", "value": ['$[{"ep_id":28,"name":"エレン"}]$']},
        {"key": "基礎ステータス" if ja else "Base Stats", "value": ["基礎攻撃力" if ja else "Base ATK"]},
        {"key": "上級ステータス" if ja else "Advanced Stats", "value": [advanced_stat]},
    ]
    if skill_desc is None:
        skill_desc = "<p>氷属性ダメージ+25%。</p>" if ja else "<p>Increases Ice DMG by 25%.</p>"
    skill = {"skill_name": "凍てつく海" if ja else "Glacial Sea", "skill_desc": skill_desc}
    rows = [weapon_row(level, language, advanced_stat) for level in (levels if levels is not None else WEAPON_LEVEL_KEYS)]

    page = {
        "id": page_id,
        "name": name,
        "icon_url": f"https://act-webstatic.hoyoverse.com/zzz/weapons/{page_id}.png",
        "filter_values": {
            "w_engine_rarity": {"values": [rarity]},
            "filter_key_13": {"values": ["強攻" if ja else "Attack"]},
        },
        "modules": [
            {
                "name": "ステータス" if ja else "Stats",
                "components": [
                    component("baseInfo", {"list": base_info}),
                    component("ascension", {"list": rows}),
                    component("equipment_skill", skill),
                ],
            }
        ],
    }
    return {"retcode": 0, "message": "OK", "data": {"page": page}}


def build_bangboo_payload(
    language: str = "ja",
    page_id: str = "200",
    name: str | None = None,
    factions: list[str] | None = None,
    stats: list[str] | None = None,
    levels: list[str] | None = None,
) -> dict[str, Any]:
    """Entry-page response for a bangboo, in Japanese or English."""
    ja = language == "ja"
    name = name if name is not None else ("アマトウ" if ja else "Amillion")
    filters = {
        "agent_rarity": ["S"],
        "agent_stats": stats if stats is not None else ["物理属性" if ja else "Physical"],
        "agent_faction": factions if factions is not None else (["邪兎屋"] if ja else ["Cunning Hares"]),
    }
    talents = [
        {
            "title": "追加能力" if ja else "Additional Ability",
            "desc": "<p>概要</p>",
            "children": [
                {"desc": "<p>邪兎屋のエージェントがいる場合、攻撃力が上昇する。</p>" if ja else "<p>Increases ATK.</p>"}
            ],
        }
    ]
    payload = build_payload(
        language,
        page_id=page_id,
        name=name,
        levels=levels,
        base_info=[
            {"key": "名前" if ja else "Name", "value": [name]},
            {"key": "実装バージョン" if ja else "Release Version", "value": ["<p>Ver.1.1</p>"]},
        ],
        filters=filters,
        talents=[],
    )
    payload["data"]["page"]["modules"].append(
        {"name": "スキル" if ja else "Skills", "components": [component("talent", {"list": talents})]}
    )
    return payload


@pytest.fixture
def payload_factory():
    """Callable building entry-page payload dicts."""
    return build_payload


@pytest.fixture
def fast_config(tmp_path) -> HarvestConfig:
    """Configuration without delays, writing into a temporary directory."""
    return HarvestConfig(
        base_retry_delay_ms=0,
        retry_delay_cap_ms=0,
        inter_batch_delay_ms=0,
        stagger_ms=0,
        asset_root=tmp_path / "icons",
        weapon_asset_root=tmp_path / "weapon-icons",
        output_path=tmp_path / "characters.json",
        weapon_output_path=tmp_path / "weapons.json",
        bangboo_output_path=tmp_path / "bangboo.json",
    )


@pytest.fixture
def weapon_payload_factory():
    return build_weapon_payload


@pytest.fixture
def bangboo_payload_factory():
    return build_bangboo_payload
