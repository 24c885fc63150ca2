from datetime import datetime, timezone

import pytest

from delivery_scanner.components import Delivery, DeliveryStatus, GeoCoordinate, NewDelivery
from delivery_scanner.deliveries import DeliveryBook, RandomDurationEstimator, advance
from delivery_scanner.exceptions import (
    DeliveryNotFoundError,
    DuplicateDeliveryError,
    InvalidTransitionError,
)

ANCHOR = GeoCoordinate(lat=51.5074, lng=-0.1278)
CREATED = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def build_delivery(identifier="d-1", status=DeliveryStatus.PENDING, coordinate=ANCHOR):
    return Delivery(
        identifier=identifier,
        address="///index.home.raft",
        coordinate=coordinate,
        status=status,
        created_at=CREATED,
        estimated_minutes=25,
    )


def build_event(identifier, coordinate=ANCHOR):
    return NewDelivery(
        identifier=identifier,
        address="///filled.count.soap",
        coordinate=coordinate,
        created_at=CREATED,
    )


def test_advance_moves_pending_to_in_transit():
    delivery = build_delivery()
    moved = advance(delivery, "in-transit")
    assert moved.status is DeliveryStatus.IN_TRANSIT
    assert delivery.status is DeliveryStatus.PENDING


def test_advance_rejects_repeating_current_status():
    moved = advance(build_delivery(), DeliveryStatus.IN_TRANSIT)
    with pytest.raises(InvalidTransitionError) as excinfo:
        advance(moved, DeliveryStatus.IN_TRANSIT)
    assert excinfo.value.current is DeliveryStatus.IN_TRANSIT
    assert excinfo.value.requested is DeliveryStatus.IN_TRANSIT


def test_advance_completes_in_transit_delivery():
    moved = advance(build_delivery(status=DeliveryStatus.IN_TRANSIT), "delivered")
    assert moved.status is DeliveryStatus.DELIVERED


@pytest.mark.parametrize(
    "current, requested",
    [
        (DeliveryStatus.PENDING, DeliveryStatus.DELIVERED),
        (DeliveryStatus.PENDING, DeliveryStatus.PENDING),
        (DeliveryStatus.IN_TRANSIT, DeliveryStatus.PENDING),
        (DeliveryStatus.DELIVERED, DeliveryStatus.PENDING),
        (DeliveryStatus.DELIVERED, DeliveryStatus.IN_TRANSIT),
        (DeliveryStatus.DELIVERED, DeliveryStatus.DELIVERED),
    ],
)
def test_advance_rejects_invalid_edges(current, requested):
    with pytest.raises(InvalidTransitionError):
        advance(build_delivery(status=current), requested)


def test_advance_rejects_unknown_status_value():
    with pytest.raises(ValueError):
        advance(build_delivery(), "lost")


def test_book_receives_events_with_estimate():
    book = DeliveryBook(ANCHOR, estimator=lambda event: 20)
    delivery = book.receive(build_event("d-7"))
    assert delivery.status is DeliveryStatus.PENDING
    assert delivery.estimated_minutes == 20
    assert book.get("d-7") == delivery
    assert "d-7" in book
    assert len(book) == 1


def test_book_rejects_duplicate_identifiers():
    book = DeliveryBook(ANCHOR)
    book.add(build_delivery("d-1"))
    with pytest.raises(DuplicateDeliveryError):
        book.add(build_delivery("d-1"))


def test_book_lookup_of_unknown_identifier():
    book = DeliveryBook(ANCHOR)
    with pytest.raises(DeliveryNotFoundError):
        book.get("missing")
    with pytest.raises(KeyError):
        book.advance("missing", "in-transit")


def test_book_advance_replaces_stored_delivery():
    book = DeliveryBook(ANCHOR)
    book.add(build_delivery("d-1"))
    book.advance("d-1", "in-transit")
    book.advance("d-1", "delivered")
    assert book.get("d-1").status is DeliveryStatus.DELIVERED
    with pytest.raises(InvalidTransitionError):
        book.advance("d-1", "in-transit")


def test_book_ranks_by_distance_from_its_anchor():
    book = DeliveryBook(ANCHOR, estimator=lambda event: None)
    book.receive(build_event("far", GeoCoordinate(51.60, -0.1278)))
    book.receive(build_event("near", GeoCoordinate(51.51, -0.1278)))
    book.receive(build_event("mid", GeoCoordinate(51.55, -0.1278)))
    assert [d.identifier for d in book.ranked()] == ["near", "mid", "far"]
    assert [d.identifier for d in book] == ["far", "near", "mid"]


def test_random_estimator_stays_in_range_and_is_seedable():
    first = RandomDurationEstimator(seed=7)
    second = RandomDurationEstimator(seed=7)
    values = [first(build_event(str(i))) for i in range(50)]
    assert values == [second(build_event(str(i))) for i in range(50)]
    assert all(15 <= value <= 59 for value in values)


def test_delivery_as_dict_is_display_ready():
    data = build_delivery("d-9").as_dict()
    assert data == {
        "identifier": "d-9",
        "address": "///index.home.raft",
        "lat": 51.5074,
        "lng": -0.1278,
        "status": "pending",
        "created_at": "2024-05-01T09:00:00+00:00",
        "estimated_minutes": 25,
    }
