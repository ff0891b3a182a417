"""Read-only reference data: the tarot deck, spreads, trigrams and hexagrams.

- Loads JSON from divination/data/
- Provides: get_deck(), get_card(code), get_spreads(), get_spread(key),
  get_hexagram(number), hexagram_for_lines(lines)

Everything returned here is immutable and cached for the life of the process.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from .errors import DeckError
from .models import Card, Hexagram, Spread, Trigram

DATA_DIR = Path(__file__).resolve().parent / "data"
DECK_PATH = DATA_DIR / "rws_deck.json"
SPREADS_PATH = DATA_DIR / "spreads.json"
ICHING_PATH = DATA_DIR / "iching.json"

DECK_SIZE = 78


def _load_json(path: Path) -> Dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise DeckError(f"Reference data file not found at: {path}") from e

    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise DeckError(f"Invalid JSON in {path}: {e}") from e


_DECK_CACHE: Optional[List[Card]] = None
_SPREAD_CACHE: Optional[Dict[str, Spread]] = None
_ICHING_CACHE: Optional[Dict[str, Any]] = None


def get_deck() -> List[Card]:
    global _DECK_CACHE
    if _DECK_CACHE is None:
        data = _load_json(DECK_PATH)
        if "cards" not in data or not isinstance(data["cards"], list) or len(data["cards"]) != DECK_SIZE:
            raise DeckError(f"Deck data must contain exactly {DECK_SIZE} cards.")
        try:
            _DECK_CACHE = [Card(**c) for c in data["cards"]]
        except ValidationError as e:
            raise DeckError(f"Invalid card record in {DECK_PATH}: {e}") from e
    return list(_DECK_CACHE)


def get_card(code: str) -> Card:
    for c in get_deck():
        if c.code == code:
            return c
    raise DeckError(f"Unknown card code: {code}")


def cards_by_code() -> Dict[str, Card]:
    return {c.code: c for c in get_deck()}


def get_spreads() -> List[Spread]:
    global _SPREAD_CACHE
    if _SPREAD_CACHE is None:
        data = _load_json(SPREADS_PATH)
        try:
            spreads = [Spread(**s) for s in data.get("spreads", [])]
        except ValidationError as e:
            raise DeckError(f"Invalid spread definition in {SPREADS_PATH}: {e}") from e
        _SPREAD_CACHE = {s.key: s for s in spreads}
    return list(_SPREAD_CACHE.values())


def get_spread(key: str) -> Spread:
    spread = {s.key: s for s in get_spreads()}.get(key)
    if spread is None:
        raise DeckError(f"Unknown spread: {key}")
    return spread


def _iching() -> Dict[str, Any]:
    global _ICHING_CACHE
    if _ICHING_CACHE is None:
        data = _load_json(ICHING_PATH)
        trigrams = {t["key"]: Trigram(**t) for t in data.get("trigrams", [])}
        if len(trigrams) != 8:
            raise DeckError("I Ching data must contain exactly 8 trigrams.")

        # king_wen is keyed lower trigram first, then upper trigram.
        king_wen: Dict[str, Dict[str, int]] = data.get("king_wen", {})
        placement: Dict[int, tuple] = {}
        for lower, row in king_wen.items():
            for upper, number in row.items():
                placement[number] = (upper, lower)
        if sorted(placement) != list(range(1, 65)):
            raise DeckError("King Wen table must map all 64 hexagrams exactly once.")

        hexagrams: Dict[int, Hexagram] = {}
        for h in data.get("hexagrams", []):
            upper, lower = placement[h["number"]]
            hexagrams[h["number"]] = Hexagram(**h, upper=upper, lower=lower)
        if len(hexagrams) != 64:
            raise DeckError("I Ching data must contain exactly 64 hexagrams.")

        _ICHING_CACHE = {
            "trigrams": trigrams,
            "by_lines": {tuple(t.lines): t.key for t in trigrams.values()},
            "king_wen": king_wen,
            "hexagrams": hexagrams,
        }
    return _ICHING_CACHE


def get_trigram(key: str) -> Trigram:
    trigram = _iching()["trigrams"].get(key)
    if trigram is None:
        raise DeckError(f"Unknown trigram: {key}")
    return trigram


def get_hexagram(number: int) -> Hexagram:
    hexagram = _iching()["hexagrams"].get(number)
    if hexagram is None:
        raise DeckError(f"Unknown hexagram number: {number}")
    return hexagram


def hexagram_for_lines(lines: Sequence[int]) -> Hexagram:
    """Look up a hexagram from six yin (0) / yang (1) lines, bottom to top."""
    if len(lines) != 6 or any(v not in (0, 1) for v in lines):
        raise DeckError(f"A hexagram needs six lines of 0 or 1, got {list(lines)}")
    data = _iching()
    lower = data["by_lines"][tuple(lines[:3])]
    upper = data["by_lines"][tuple(lines[3:])]
    return get_hexagram(data["king_wen"][lower][upper])


def validate_deck() -> None:
    cards = get_deck()
    codes = [c.code for c in cards]
    if len(codes) != len(set(codes)):
        raise DeckError("Duplicate card codes detected.")

    for c in cards:
        if not c.upright.get("en") or not c.reversed.get("en"):
            raise DeckError(f"Card {c.code} is missing an English meaning")
        if c.arcana != "Major" and not c.suit:
            raise DeckError(f"Card {c.code} has no suit")

    for s in get_spreads():
        if s.card_count > len(cards):
            raise DeckError(f"Spread {s.key} needs more cards than the deck holds")
