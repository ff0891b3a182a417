"""Card drawing and I Ching casting."""

from __future__ import annotations

import logging
import random
from typing import List, Optional, Sequence

from .errors import InvalidRequest
from .models import Card, CastMethod, DrawnCard, HexagramCast, Spread
from .reference import hexagram_for_lines
from .utils.rng import bernoulli, fisher_yates, get_rng, weighted_choice

log = logging.getLogger("divination.draw")

REVERSAL_PROBABILITY = 0.3

# Line values, bottom to top: 6 old yin, 7 young yang, 8 young yin, 9 old yang.
LINE_VALUES = (6, 7, 8, 9)
YARROW_WEIGHTS = (1, 5, 7, 3)
CHANGING = {6: 1, 9: 0}


def draw(
    deck: Sequence[Card],
    spread: Spread,
    *,
    locale: str = "en",
    rng: Optional[random.Random] = None,
    reversal_probability: float = REVERSAL_PROBABILITY,
    allow_reversals: bool = True,
) -> List[DrawnCard]:
    """Draw spread.card_count distinct cards and bind them to the spread's positions.

    Orientation is an independent Bernoulli trial per card, drawn after the
    shuffle so it never depends on where a card landed in the deck.
    """
    if spread.card_count > len(deck):
        raise InvalidRequest(
            f"Spread {spread.key!r} needs {spread.card_count} cards but the deck has {len(deck)}"
        )
    if len({c.code for c in deck}) != len(deck):
        raise InvalidRequest("Deck contains duplicate card codes")

    rng = get_rng(rng)
    shuffled = fisher_yates(deck, rng)
    labels = spread.labels(locale)

    drawn = []
    for card, label in zip(shuffled[: spread.card_count], labels):
        reversed_ = allow_reversals and bernoulli(rng, reversal_probability)
        drawn.append(DrawnCard(card=card, position=label, reversed=reversed_))

    log.info(
        "drew %s for spread=%s: %s",
        len(drawn),
        spread.key,
        ", ".join(f"{d.code}{' (R)' if d.reversed else ''}" for d in drawn),
    )
    return drawn


def draw_manual(
    deck: Sequence[Card],
    codes: Sequence[str],
    spread: Spread,
    *,
    locale: str = "en",
    rng: Optional[random.Random] = None,
    reversal_probability: float = REVERSAL_PROBABILITY,
    allow_reversals: bool = True,
) -> List[DrawnCard]:
    """Bind cards the user picked from a physical deck to the spread's positions."""
    if len(codes) != spread.card_count:
        raise InvalidRequest(f"Spread {spread.key!r} needs {spread.card_count} cards, got {len(codes)}")
    if len(set(codes)) != len(codes):
        raise InvalidRequest("The same card cannot be placed twice")

    by_code = {c.code: c for c in deck}
    rng = get_rng(rng)
    drawn = []
    for code, label in zip(codes, spread.labels(locale)):
        card = by_code.get(code)
        if card is None:
            raise InvalidRequest(f"Card with code {code} not found in deck")
        reversed_ = allow_reversals and bernoulli(rng, reversal_probability)
        drawn.append(DrawnCard(card=card, position=label, reversed=reversed_))
    return drawn


def _coin_line(rng: random.Random) -> int:
    # heads count 3, tails count 2
    return sum(3 if bernoulli(rng, 0.5) else 2 for _ in range(3))


def cast_lines(method: CastMethod = "coins", rng: Optional[random.Random] = None) -> List[int]:
    rng = get_rng(rng)
    if method == "coins":
        return [_coin_line(rng) for _ in range(6)]
    if method == "yarrow":
        return [weighted_choice(rng, LINE_VALUES, YARROW_WEIGHTS) for _ in range(6)]
    raise InvalidRequest(f"Unknown casting method: {method}")


def hexagram_from_lines(lines: Sequence[int], method: CastMethod = "coins") -> HexagramCast:
    if len(lines) != 6 or any(v not in LINE_VALUES for v in lines):
        raise InvalidRequest(f"Six line values of 6, 7, 8 or 9 are required, got {list(lines)}")

    primary_bits = [v % 2 for v in lines]
    changing = [i + 1 for i, v in enumerate(lines) if v in CHANGING]
    primary = hexagram_for_lines(primary_bits)

    resulting = None
    if changing:
        resulting_bits = [CHANGING.get(v, v % 2) for v in lines]
        resulting = hexagram_for_lines(resulting_bits)

    return HexagramCast(
        method=method,
        lines=list(lines),
        changing_lines=changing,
        primary=primary,
        resulting=resulting,
    )


def cast_hexagram(method: CastMethod = "coins", rng: Optional[random.Random] = None) -> HexagramCast:
    cast = hexagram_from_lines(cast_lines(method, rng), method)
    log.info(
        "cast hexagram %s (%s) changing=%s -> %s",
        cast.primary.number,
        method,
        cast.changing_lines,
        cast.resulting.number if cast.resulting else None,
    )
    return cast
