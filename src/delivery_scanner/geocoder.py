from __future__ import annotations

import logging
import random
import zlib
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, Tuple

from rapidfuzz import fuzz, process

from .components import GeoCoordinate
from .normalize import normalize_candidate

logger = logging.getLogger(__name__)

DEFAULT_ANCHOR = GeoCoordinate(lat=51.5074, lng=-0.1278)

KNOWN_ADDRESSES: Dict[str, GeoCoordinate] = {
    "///filled.count.soap": GeoCoordinate(lat=51.521251, lng=-0.203586),
    "///index.home.raft": GeoCoordinate(lat=51.508112, lng=-0.075949),
    "///daring.lion.race": GeoCoordinate(lat=51.495326, lng=-0.191406),
    "///table.lamp.house": GeoCoordinate(lat=51.515419, lng=-0.141204),
}


class Geocoder(ABC):
    @abstractmethod
    def resolve(self, address: str) -> GeoCoordinate:
        """Return a coordinate for ``address``. Must not raise."""
        raise NotImplementedError


class StaticGeocoder(Geocoder):
    """Lookup-table geocoder standing in for a real three-word address service.

    Unknown addresses are first fuzzily corrected against the table, which
    absorbs single-letter OCR slips. Anything still unknown lands on a point
    jittered around the anchor. The jitter is seeded from the address itself so
    repeated lookups agree.
    """

    def __init__(
        self,
        table: Optional[Mapping[str, GeoCoordinate]] = None,
        anchor: GeoCoordinate = DEFAULT_ANCHOR,
        fuzzy_threshold: float = 90.0,
        jitter_degrees: float = 0.05,
    ) -> None:
        source = KNOWN_ADDRESSES if table is None else table
        self.table: Dict[str, GeoCoordinate] = {
            normalize_candidate(address): coordinate for address, coordinate in source.items()
        }
        self.anchor = anchor
        self.fuzzy_threshold = fuzzy_threshold
        self.jitter_degrees = jitter_degrees

    def resolve(self, address: str) -> GeoCoordinate:
        key = normalize_candidate(address)
        coordinate = self.table.get(key)
        if coordinate is not None:
            return coordinate

        corrected = self.correct(key)
        if corrected is not None:
            logger.debug("corrected %s to %s", key, corrected)
            return self.table[corrected]

        logger.debug("no table entry for %s, using jittered anchor", key)
        return self._jittered(key)

    def correct(self, address: str) -> Optional[str]:
        if not self.table or not address:
            return None
        best = process.extractOne(address, list(self.table), scorer=fuzz.ratio)
        if best is None:
            return None
        choice, score, _ = best
        if score >= self.fuzzy_threshold:
            return choice
        return None

    def suggest(self, address: str, limit: int = 3) -> List[Tuple[str, float]]:
        """Closest known addresses, best first, for manual correction."""
        key = normalize_candidate(address)
        if not key or not self.table:
            return []
        matches = process.extract(key, list(self.table), scorer=fuzz.ratio, limit=limit)
        return [(choice, float(score)) for choice, score, _ in matches]

    def _jittered(self, address: str) -> GeoCoordinate:
        rng = random.Random(zlib.crc32(address.encode("utf-8")))
        spread = self.jitter_degrees
        return GeoCoordinate(
            lat=self.anchor.lat + rng.uniform(-spread, spread),
            lng=self.anchor.lng + rng.uniform(-spread, spread),
        )
