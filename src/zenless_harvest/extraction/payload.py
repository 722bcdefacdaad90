# ABOUTME: Typed schema for wiki entry-page payloads and their string-encoded component data
# ABOUTME: Navigation helpers return None for absent structure; callers decide what is required

import json
import re
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from zenless_harvest.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

# Values such as faction names are sometimes wrapped as $[{"ep_id": 1, "name": "..."}]$
_EMBEDDED_JSON = re.compile(r"^\$\[(.*)\]\$$", re.DOTALL)
_HTML_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Component(_Lenient):
    component_id: str = ""
    # Second encoding layer: a JSON document stored as a string
    data: str = ""


class Module(_Lenient):
    name: str = ""
    components: list[Component] = Field(default_factory=list)


class FilterValue(_Lenient):
    values: list[str] = Field(default_factory=list)


class PageData(_Lenient):
    id: str = ""
    name: str = ""
    icon_url: str | None = None
    filter_values: dict[str, FilterValue] = Field(default_factory=dict)
    modules: list[Module] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("filter_values", mode="before")
    @classmethod
    def _drop_null_filters(cls, value: Any) -> Any:
        # The API sends an empty list instead of an object for pages without filters
        if not isinstance(value, dict):
            return {}
        return {key: item for key, item in value.items() if isinstance(item, dict)}


class PayloadData(_Lenient):
    page: PageData | None = None


class RawPayload(_Lenient):
    """Entry-page response as returned by the wiki API."""

    retcode: int = 0
    message: str = ""
    data: PayloadData | None = None

    @property
    def page(self) -> PageData | None:
        return self.data.page if self.data else None

    def find_component(self, component_id: str) -> Component | None:
        """First component with the given id across all modules, in page order."""
        page = self.page
        if page is None:
            return None
        for module in page.modules:
            for component in module.components:
                if component.component_id == component_id:
                    return component
        return None

    def filter_value(self, key: str) -> str | None:
        """First value of a page filter (e.g. ``agent_rarity``)."""
        values = self.filter_values(key)
        return values[0] if values else None

    def filter_values(self, key: str) -> list[str]:
        page = self.page
        if page is None or key not in page.filter_values:
            return []
        return [value for value in page.filter_values[key].values if value]


class InfoEntry(_Lenient):
    """One ``{key, value|values}`` entry of a key/value component list."""

    key: str = ""
    value: list[Any] | str | None = None
    values: list[Any] | str | None = None

    @property
    def items(self) -> list[str]:
        raw = self.value if self.value is not None else self.values
        if raw is None:
            return []
        if isinstance(raw, str):
            raw = [raw]
        return [str(item) for item in raw if item is not None and str(item).strip()]

    @property
    def first(self) -> str | None:
        items = self.items
        return items[0] if items else None


class CombatStat(_Lenient):
    key: str = ""
    values: list[str] = Field(default_factory=list)

    @field_validator("values", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            value = [value]
        return ["" if item is None else str(item) for item in value]


class LevelEntry(_Lenient):
    key: str = ""
    combat_list: list[CombatStat] = Field(default_factory=list, alias="combatList")


class LevelStatRow(BaseModel):
    """Stats at one level label: stat name -> ``[before, after]`` (or a single value)."""

    level_key: str
    stat_entries: dict[str, list[str]] = Field(default_factory=dict)

    @classmethod
    def from_entry(cls, entry: LevelEntry) -> "LevelStatRow":
        stat_entries: dict[str, list[str]] = {}
        for stat in entry.combat_list:
            # First occurrence of a stat name wins
            stat_entries.setdefault(stat.key, stat.values)
        return cls(level_key=entry.key, stat_entries=stat_entries)


def decode_component(component: Component | None) -> dict[str, Any] | None:
    """Parse the string-encoded data of a component.

    Returns:
        The decoded object, or None when the component is absent or its data
        is not a JSON object
    """
    if component is None or not component.data.strip():
        return None
    try:
        decoded = json.loads(component.data)
    except json.JSONDecodeError as e:
        logger.warning("Component data is not valid JSON", component_id=component.component_id, error=str(e))
        return None
    return decoded if isinstance(decoded, dict) else None


def decode_list(component: Component | None, model: type[T]) -> list[T] | None:
    """Decode a component whose data is ``{"list": [...]}`` into typed entries.

    Returns:
        Parsed entries, or None when the component or its list is absent
    """
    decoded = decode_component(component)
    if decoded is None or not isinstance(decoded.get("list"), list):
        return None

    adapter = TypeAdapter(model)
    entries: list[T] = []
    for raw_entry in decoded["list"]:
        if not isinstance(raw_entry, dict):
            continue
        try:
            entries.append(adapter.validate_python(raw_entry))
        except PydanticValidationError as e:
            logger.warning("Skipping malformed component entry", model=model.__name__, error=str(e))
    return entries


def unwrap_embedded_value(value: str) -> list[str]:
    """Resolve ``$[...]$`` embedded JSON values to their display names.

    Plain values are returned as a single-element list with HTML tags removed.
    """
    match = _EMBEDDED_JSON.match(value.strip())
    if not match:
        text = strip_html(value)
        return [text] if text else []

    try:
        decoded = json.loads(f"[{match.group(1)}]")
    except json.JSONDecodeError:
        logger.warning("Embedded value is not valid JSON", value=value[:100])
        return []

    names: list[str] = []
    for item in decoded:
        if isinstance(item, dict) and item.get("name"):
            names.append(str(item["name"]).strip())
        elif isinstance(item, str) and item.strip():
            names.append(item.strip())
    return names


def strip_html(value: str) -> str:
    return _HTML_TAG.sub("", value).strip()


def clean_text(value: object) -> str:
    """Free text without HTML tags and with runs of whitespace collapsed."""
    if not isinstance(value, str):
        return ""
    return _WHITESPACE.sub(" ", strip_html(value)).strip()
