import pytest
from fastapi.testclient import TestClient

from divination.config import Settings
from divination.errors import DeckError
from divination.main import create_app
from divination.reference import (
    DECK_SIZE,
    get_card,
    get_deck,
    get_hexagram,
    get_spread,
    get_spreads,
    get_trigram,
    hexagram_for_lines,
    validate_deck,
)


@pytest.fixture
def client(registry):
    return TestClient(create_app(registry=registry, settings=Settings()))


def test_deck_has_78_unique_cards():
    deck = get_deck()
    assert len(deck) == DECK_SIZE
    assert len({c.code for c in deck}) == DECK_SIZE
    validate_deck()


def test_get_deck_returns_a_copy():
    deck = get_deck()
    deck.pop()
    assert len(get_deck()) == DECK_SIZE


def test_card_lookup_and_locale_fallback():
    fool = get_card("00")
    assert fool.title_for("en") == "The Fool"
    assert fool.title_for("zh-TW") == "愚者"
    # no Japanese title shipped, English is used
    assert fool.title_for("ja") == "The Fool"
    assert fool.meaning(True) != fool.meaning(False)


def test_unknown_card_raises():
    with pytest.raises(DeckError):
        get_card("XX")


def test_spreads_match_their_positions():
    for s in get_spreads():
        assert s.card_count == len(s.positions)
    assert get_spread("three-card").labels("en") == ["Past", "Present", "Future"]
    assert get_spread("celtic-cross").card_count == 10


def test_unknown_spread_raises():
    with pytest.raises(DeckError):
        get_spread("nope")


@pytest.mark.parametrize(
    "lines,number",
    [
        ([1, 1, 1, 1, 1, 1], 1),
        ([0, 0, 0, 0, 0, 0], 2),
        ([1, 1, 1, 0, 0, 0], 11),
        ([0, 0, 0, 1, 1, 1], 12),
        ([1, 0, 1, 0, 1, 0], 63),
        ([0, 1, 0, 1, 0, 1], 64),
    ],
)
def test_hexagram_lookup_uses_lower_then_upper(lines, number):
    assert hexagram_for_lines(lines).number == number


def test_hexagram_trigrams():
    peace = get_hexagram(11)
    assert peace.lower == "qian"
    assert peace.upper == "kun"
    assert get_trigram("li").lines == [1, 0, 1]


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "provider": "fake"}


def test_cards_endpoint(client):
    r = client.get("/deck/cards")
    assert r.status_code == 200
    assert len(r.json()["cards"]) == DECK_SIZE


def test_card_endpoint(client):
    r = client.get("/deck/cards/W01")
    assert r.status_code == 200
    assert r.json()["suit"]
    assert client.get("/deck/cards/ZZ").status_code == 404


def test_spreads_endpoint_localizes_labels(client):
    r = client.get("/spreads", params={"locale": "zh-TW"})
    assert r.status_code == 200
    spreads = {s["key"]: s for s in r.json()["spreads"]}
    assert spreads["relationship"]["is_premium"] is True
    assert len(spreads["three-card"]["positions"]) == 3
    assert spreads["three-card"]["positions"] != ["Past", "Present", "Future"]


def test_iching_cast_endpoint(client, fake_provider):
    r = client.post("/iching/cast", json={"method": "yarrow", "question": "Should I move?", "seed": "s1"})
    assert r.status_code == 200
    body = r.json()
    assert len(body["cast"]["lines"]) == 6
    assert 1 <= body["cast"]["primary"]["number"] <= 64
    assert body["interpretation"] == "A fake interpretation."
    assert "Should I move?" in fake_provider.requests[0].prompt


def test_iching_cast_without_interpretation(client, fake_provider):
    r = client.post("/iching/cast", json={"interpret": False})
    assert r.status_code == 200
    assert r.json()["interpretation"] is None
    assert fake_provider.calls == 0
