from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .components import RawMatch
from .normalize import MIN_SEGMENT_LENGTH, is_valid_candidate, normalize_candidate
from .strategies import DEFAULT_STRATEGIES, PatternStrategy

logger = logging.getLogger(__name__)


@dataclass
class ExtractorConfig:
    strategies: Sequence[PatternStrategy] = DEFAULT_STRATEGIES
    min_segment_length: int = MIN_SEGMENT_LENGTH


class AddressExtractor:
    """Pull normalised three-word addresses out of recognised text.

    Every configured strategy runs over the whole text. Their raw matches are
    normalised and merged, keeping the earliest occurrence of each address,
    and only then checked against the canonical format. The result is ordered
    by where each address first appears in the text, so the first element is
    the leftmost valid address.
    """

    def __init__(self, config: ExtractorConfig | None = None) -> None:
        self.config = config or ExtractorConfig()

    def raw_matches(self, text: str) -> List[Tuple[int, RawMatch]]:
        found: List[Tuple[int, RawMatch]] = []
        for rank, strategy in enumerate(self.config.strategies):
            for match in strategy.find(text):
                found.append((rank, match))
        return found

    def extract(self, text: str) -> Tuple[str, ...]:
        if not text:
            return ()

        first_seen: Dict[str, Tuple[int, int]] = {}
        for rank, match in self.raw_matches(text):
            candidate = normalize_candidate(match.text)
            if not candidate:
                continue
            position = (match.start, rank)
            stored = first_seen.get(candidate)
            if stored is None or position < stored:
                first_seen[candidate] = position

        ordered = sorted(first_seen.items(), key=lambda item: item[1])
        valid = tuple(
            candidate
            for candidate, _ in ordered
            if is_valid_candidate(candidate, self.config.min_segment_length)
        )
        logger.debug(
            "extracted %d of %d merged candidates from %d characters",
            len(valid),
            len(ordered),
            len(text),
        )
        return valid

    def first(self, text: str) -> str | None:
        candidates = self.extract(text)
        return candidates[0] if candidates else None


_DEFAULT_EXTRACTOR = AddressExtractor()


def extract_addresses(text: str) -> Tuple[str, ...]:
    return _DEFAULT_EXTRACTOR.extract(text)
