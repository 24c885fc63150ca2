from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import List

from .components import RawMatch
from .normalize import WORD

_TAIL_GUARD = r"(?!\w|\.\w)"
_PUNCT_SEPARATOR = r"\s*[.,·•∙]\s*"
_LOOSE_SEPARATOR = r"(?:" + _PUNCT_SEPARATOR + r"|[ \t]+)"


class PatternStrategy(ABC):
    name: str

    @abstractmethod
    def find(self, text: str) -> List[RawMatch]:
        raise NotImplementedError


class RegexStrategy(PatternStrategy):
    pattern: re.Pattern

    def find(self, text: str) -> List[RawMatch]:
        if not text:
            return []
        return [
            RawMatch(start=match.start(), text=match.group(0), strategy=self.name)
            for match in self.pattern.finditer(text)
        ]


class PrefixedStrategy(RegexStrategy):
    """Three dot-joined words behind one to three slashes."""

    name = "prefixed"
    pattern = re.compile(
        r"/{1,3}\s*" + WORD + r"\." + WORD + r"\." + WORD + _TAIL_GUARD,
        re.IGNORECASE,
    )


class BareStrategy(RegexStrategy):
    """A separator-less run of exactly three dot-joined words."""

    name = "bare"
    pattern = re.compile(
        r"(?<![\w./])" + WORD + r"\." + WORD + r"\." + WORD + _TAIL_GUARD,
        re.IGNORECASE,
    )


class LooseSeparatorStrategy(RegexStrategy):
    """Runs behind a full /// prefix whose dots were read as commas, bullets
    or blanks. At least one separator must still be punctuation.
    """

    name = "loose_separator"
    pattern = re.compile(
        r"///\s*"
        + WORD
        + r"(?:" + _PUNCT_SEPARATOR + WORD + _LOOSE_SEPARATOR
        + r"|" + _LOOSE_SEPARATOR + WORD + _PUNCT_SEPARATOR + r")"
        + WORD
        + _TAIL_GUARD,
        re.IGNORECASE,
    )


DEFAULT_STRATEGIES = (PrefixedStrategy(), BareStrategy(), LooseSeparatorStrategy())
