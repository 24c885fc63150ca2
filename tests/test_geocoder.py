from delivery_scanner.components import GeoCoordinate
from delivery_scanner.geocoder import DEFAULT_ANCHOR, KNOWN_ADDRESSES, StaticGeocoder


def test_known_address_resolves_to_table_entry():
    geocoder = StaticGeocoder()
    assert geocoder.resolve("///filled.count.soap") == GeoCoordinate(51.521251, -0.203586)
    assert geocoder.resolve("FILLED.COUNT.SOAP") == KNOWN_ADDRESSES["///filled.count.soap"]


def test_single_letter_slip_is_corrected():
    geocoder = StaticGeocoder()
    assert geocoder.correct("///filed.count.soap") == "///filled.count.soap"
    assert geocoder.resolve("///filed.count.soap") == KNOWN_ADDRESSES["///filled.count.soap"]


def test_unknown_address_is_jittered_around_anchor_reproducibly():
    geocoder = StaticGeocoder(jitter_degrees=0.05)
    first = geocoder.resolve("///purple.monkey.dishwasher")
    assert first == geocoder.resolve("///purple.monkey.dishwasher")
    assert abs(first.lat - DEFAULT_ANCHOR.lat) <= 0.05
    assert abs(first.lng - DEFAULT_ANCHOR.lng) <= 0.05
    assert first not in KNOWN_ADDRESSES.values()


def test_empty_table_always_falls_back_to_anchor():
    anchor = GeoCoordinate(47.9, 106.9)
    geocoder = StaticGeocoder(table={}, anchor=anchor, jitter_degrees=0.01)
    coordinate = geocoder.resolve("///filled.count.soap")
    assert abs(coordinate.lat - anchor.lat) <= 0.01
    assert abs(coordinate.lng - anchor.lng) <= 0.01
    assert geocoder.suggest("///filled.count.soap") == []


def test_suggest_orders_closest_first():
    suggestions = StaticGeocoder().suggest("index.home.rafts", limit=2)
    assert len(suggestions) == 2
    assert suggestions[0][0] == "///index.home.raft"
    assert suggestions[0][1] >= suggestions[1][1]
