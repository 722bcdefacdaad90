# ABOUTME: Free-text trigger-phrase matching for attribute tags and assist types
# ABOUTME: Case-insensitive substring matching with set semantics and bounded input length

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from zenless_harvest.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_LENGTH = 10000

E = TypeVar("E", bound=Enum)


@dataclass
class TagMatch(Generic[E]):
    """Tags found in one text, with any warnings raised while matching."""

    tags: set[E] = field(default_factory=set)
    # Canonical tags in the order their trigger phrase first appears
    ordered: list[E] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class TagExtractor(Generic[E]):
    """Match fixed trigger phrases inside free text.

    Each trigger phrase maps to one canonical tag. A phrase found several times
    still yields its tag once. An optional candidate pattern reports phrases
    that look like tags but have no mapping; those are dropped with a warning.
    """

    def __init__(
        self,
        triggers: Mapping[str, E],
        max_length: int = DEFAULT_MAX_LENGTH,
        candidate_pattern: str | None = None,
    ):
        self.triggers = {phrase.casefold(): tag for phrase, tag in triggers.items()}
        self.max_length = max_length
        self._candidates = re.compile(candidate_pattern) if candidate_pattern else None

    def extract(self, text: str | None) -> TagMatch[E]:
        result: TagMatch[E] = TagMatch()
        if not text:
            return result

        if len(text) > self.max_length:
            message = f"description truncated from {len(text)} to {self.max_length} characters"
            logger.warning("Description too long, truncating", length=len(text), max_length=self.max_length)
            result.warnings.append(message)
            text = text[: self.max_length]

        haystack = text.casefold()
        positions: list[tuple[int, E]] = []
        for phrase, tag in self.triggers.items():
            index = haystack.find(phrase)
            if index >= 0:
                positions.append((index, tag))

        for _, tag in sorted(positions, key=lambda item: item[0]):
            if tag not in result.tags:
                result.tags.add(tag)
                result.ordered.append(tag)

        if self._candidates is not None:
            for candidate in sorted({m.group(0) for m in self._candidates.finditer(text)}):
                if candidate.casefold() not in self.triggers:
                    logger.warning("Unmapped attribute phrase dropped", phrase=candidate)
                    result.warnings.append(f"unmapped phrase dropped: {candidate}")

        return result
