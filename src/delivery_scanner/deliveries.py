from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Callable, Dict, Iterator, List, Optional

from .components import Delivery, DeliveryStatus, GeoCoordinate, NewDelivery, SortKey
from .exceptions import DeliveryNotFoundError, DuplicateDeliveryError, InvalidTransitionError
from .ranking import rank_deliveries

logger = logging.getLogger(__name__)

FORWARD_TRANSITIONS = {
    DeliveryStatus.PENDING: DeliveryStatus.IN_TRANSIT,
    DeliveryStatus.IN_TRANSIT: DeliveryStatus.DELIVERED,
}

DurationEstimator = Callable[[NewDelivery], Optional[int]]


def advance(delivery: Delivery, new_status: DeliveryStatus | str) -> Delivery:
    """Move a delivery one step forward; any other request is rejected."""
    requested = DeliveryStatus(new_status)
    if FORWARD_TRANSITIONS.get(delivery.status) is not requested:
        raise InvalidTransitionError(delivery.status, requested)
    return replace(delivery, status=requested)


class RandomDurationEstimator:
    """Uniform whole-minute estimate, 15 to 59 minutes."""

    def __init__(self, minimum: int = 15, maximum: int = 59, seed: Optional[int] = None) -> None:
        if minimum > maximum:
            raise ValueError("minimum must not exceed maximum")
        self.minimum = minimum
        self.maximum = maximum
        self._random = random.Random(seed)

    def __call__(self, event: NewDelivery) -> Optional[int]:
        return self._random.randint(self.minimum, self.maximum)


class DeliveryBook:
    """Session-scoped owner of the delivery list.

    Insertion order is kept and is the tie-break order for ranking.
    """

    def __init__(
        self,
        anchor: GeoCoordinate,
        estimator: DurationEstimator | None = None,
    ) -> None:
        self.anchor = anchor
        self.estimator = estimator or RandomDurationEstimator()
        self._deliveries: Dict[str, Delivery] = {}

    def __len__(self) -> int:
        return len(self._deliveries)

    def __iter__(self) -> Iterator[Delivery]:
        return iter(list(self._deliveries.values()))

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._deliveries

    def add(self, delivery: Delivery) -> Delivery:
        if delivery.identifier in self._deliveries:
            raise DuplicateDeliveryError(f"delivery {delivery.identifier!r} already exists")
        self._deliveries[delivery.identifier] = delivery
        logger.debug("added delivery %s (%s)", delivery.identifier, delivery.address)
        return delivery

    def receive(self, event: NewDelivery) -> Delivery:
        delivery = Delivery(
            identifier=event.identifier,
            address=event.address,
            coordinate=event.coordinate,
            status=event.status,
            created_at=event.created_at,
            estimated_minutes=self.estimator(event),
        )
        return self.add(delivery)

    def get(self, identifier: str) -> Delivery:
        try:
            return self._deliveries[identifier]
        except KeyError:
            raise DeliveryNotFoundError(identifier) from None

    def advance(self, identifier: str, status: DeliveryStatus | str) -> Delivery:
        updated = advance(self.get(identifier), status)
        self._deliveries[identifier] = updated
        logger.debug("delivery %s is now %s", identifier, updated.status.value)
        return updated

    def ranked(self, key: SortKey | str = SortKey.DISTANCE, anchor: GeoCoordinate | None = None) -> List[Delivery]:
        return rank_deliveries(self._deliveries.values(), key, anchor or self.anchor)
