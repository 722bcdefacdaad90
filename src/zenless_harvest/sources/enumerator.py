# ABOUTME: Parses the markdown source list and the JSON weapon list into SourceEntry objects
# ABOUTME: Character lines carry an explicit pageId; bangboo lines live under their own section

import json
import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from zenless_harvest.core.models import EntityKind, Language, Rarity, SourceEntry
from zenless_harvest.extraction.payload import FilterValue
from zenless_harvest.extraction.vocabulary import EXCLUDED_WEAPON_RARITIES, WEAPON_FILTER_KEYS
from zenless_harvest.errors import SetupError
from zenless_harvest.utils.logging import get_logger

logger = get_logger(__name__)

CHARACTER_LINE = re.compile(r"- \[([^\]]+)\]\(([^)]+)\) - pageId: (\d+)")
BANGBOO_SECTION = re.compile(r"## ボンプページリスト\s*\n([\s\S]*?)(?=\n##|\n```|$)")
BANGBOO_LINE = re.compile(r"- \[([^\]]+)\]\(([^)]+)\) - (.+)")
ENTRY_PAGE_ID = re.compile(r"/entry/(\d+)")


def parse_source(content: str, kind: EntityKind = EntityKind.CHARACTER) -> list[SourceEntry]:
    """Extract entries of one kind from a source document.

    Characters and bangboo come from the markdown list; weapons from the JSON
    weapon list, where rarity B entries are left out.

    Raises:
        SetupError: If no entry is found or two entries share an id
    """
    if kind == EntityKind.BANGBOO:
        entries = _parse_bangboo(content)
    elif kind == EntityKind.WEAPON:
        entries = _parse_weapon_list(content)
    else:
        entries = _parse_characters(content)

    if not entries:
        raise SetupError(f"no {kind.value} entries found in source document")

    ensure_unique_ids(entries)
    logger.info("Parsed source entries", kind=kind.value, count=len(entries))
    return entries


def parse_source_file(path: Path, kind: EntityKind = EntityKind.CHARACTER) -> list[SourceEntry]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SetupError(f"cannot read source document {path}: {e}") from e
    return parse_source(content, kind)


def ensure_unique_ids(entries: list[SourceEntry]) -> None:
    """Raises SetupError listing every id that appears more than once."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for entry in entries:
        if entry.id in seen and entry.id not in duplicates:
            duplicates.append(entry.id)
        seen.add(entry.id)
    if duplicates:
        raise SetupError(f"duplicate entry ids: {', '.join(duplicates)}")


def _parse_characters(content: str) -> list[SourceEntry]:
    entries: list[SourceEntry] = []
    for match in CHARACTER_LINE.finditer(content):
        entry_id, wiki_url, page_id = (group.strip() for group in match.groups())
        if not entry_id:
            logger.warning("Skipping character line without id", line=match.group(0))
            continue
        entries.append(
            SourceEntry(
                id=entry_id,
                remote_id=int(page_id),
                wiki_url=wiki_url,
                kind=EntityKind.CHARACTER,
                language_hint=Language.JA,
            )
        )
    return entries


def _parse_bangboo(content: str) -> list[SourceEntry]:
    section = BANGBOO_SECTION.search(content)
    if section is None:
        raise SetupError("bangboo section not found in source document")

    entries: list[SourceEntry] = []
    for match in BANGBOO_LINE.finditer(section.group(1)):
        entry_id, wiki_url = match.group(1).strip(), match.group(2).strip()
        page_id = ENTRY_PAGE_ID.search(wiki_url)
        if not entry_id or page_id is None:
            logger.warning("Skipping bangboo line without page id", line=match.group(0))
            continue
        entries.append(
            SourceEntry(
                id=entry_id,
                remote_id=int(page_id.group(1)),
                wiki_url=wiki_url,
                kind=EntityKind.BANGBOO,
                language_hint=Language.JA,
            )
        )
    return entries


class WeaponListItem(BaseModel):
    """One item of the JSON weapon list."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    entry_page_id: str = ""
    name: str = ""
    icon_url: str | None = None
    filter_values: dict[str, FilterValue] = Field(default_factory=dict)

    def filter_value(self, key: str) -> str | None:
        values = self.filter_values.get(key)
        return values.values[0] if values and values.values else None


def _parse_weapon_list(content: str) -> list[SourceEntry]:
    try:
        items = json.loads(content)
    except json.JSONDecodeError as e:
        raise SetupError(f"weapon list is not valid JSON: {e}") from e
    if not isinstance(items, list):
        raise SetupError("weapon list root must be an array")

    entries: list[SourceEntry] = []
    for raw in items:
        try:
            item = WeaponListItem.model_validate(raw)
        except ValidationError as e:
            logger.warning("Skipping malformed weapon list item", error=str(e))
            continue

        page_id = item.entry_page_id.strip()
        rarity = item.filter_value(WEAPON_FILTER_KEYS["rarity"])
        if rarity in EXCLUDED_WEAPON_RARITIES:
            logger.info("Excluding weapon by rarity", name=item.name, page_id=page_id, rarity=rarity)
            continue
        if not page_id.isdigit() or not item.name.strip() or rarity not in {r.value for r in Rarity}:
            logger.warning("Skipping invalid weapon list item", name=item.name, page_id=page_id, rarity=rarity)
            continue

        entries.append(
            SourceEntry(
                id=page_id,
                remote_id=int(page_id),
                kind=EntityKind.WEAPON,
                icon_url=item.icon_url or None,
                language_hint=Language.JA,
            )
        )
    return entries
