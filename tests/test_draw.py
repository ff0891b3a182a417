"""Tests for card drawing and hexagram casting."""

import random
from collections import Counter

import pytest

from divination.draw import cast_hexagram, cast_lines, draw, draw_manual, hexagram_from_lines
from divination.errors import InvalidRequest
from divination.models import Spread, SpreadPosition
from divination.reference import get_deck, get_spread
from divination.utils.rng import fisher_yates, seeded_random


def _spread(n):
    return Spread(
        key=f"test-{n}",
        name={"en": "Test"},
        positions=[SpreadPosition(label={"en": f"P{i}"}) for i in range(n)],
        card_count=n,
    )


class TestRNG:
    def test_seeded_random_deterministic(self):
        """Same seed and salt should produce same sequence."""
        rng1 = seeded_random("test_seed", "test_salt")
        rng2 = seeded_random("test_seed", "test_salt")
        assert [rng1.random() for _ in range(10)] == [rng2.random() for _ in range(10)]

    def test_seeded_random_different_salts(self):
        rng1 = seeded_random("seed", "salt1")
        rng2 = seeded_random("seed", "salt2")
        assert [rng1.random() for _ in range(10)] != [rng2.random() for _ in range(10)]

    def test_fisher_yates_is_a_permutation_and_leaves_input_alone(self):
        items = list(range(20))
        shuffled = fisher_yates(items, random.Random(3))
        assert sorted(shuffled) == items
        assert items == list(range(20))


class TestDraw:
    def test_cards_are_unique_and_bound_to_positions(self):
        deck = get_deck()
        spread = get_spread("celtic-cross")
        for seed in range(200):
            drawn = draw(deck, spread, rng=random.Random(seed))
            assert len(drawn) == 10
            assert len({d.code for d in drawn}) == 10
            assert [d.position for d in drawn] == spread.labels("en")

    def test_positions_use_locale(self):
        drawn = draw(get_deck(), get_spread("three-card"), locale="zh-TW", rng=random.Random(1))
        assert [d.position for d in drawn] == ["過去", "現在", "未來"]

    def test_reversal_rate(self):
        deck = get_deck()
        spread = get_spread("single-card")
        rng = random.Random(42)
        reversed_count = sum(draw(deck, spread, rng=rng)[0].reversed for _ in range(10_000))
        assert 0.28 <= reversed_count / 10_000 <= 0.32

    def test_reversals_can_be_disabled(self):
        drawn = draw(get_deck(), get_spread("celtic-cross"), rng=random.Random(0), allow_reversals=False)
        assert not any(d.reversed for d in drawn)

    def test_same_seed_same_draw(self):
        spread = get_spread("three-card")
        a = draw(get_deck(), spread, rng=seeded_random("abc"))
        b = draw(get_deck(), spread, rng=seeded_random("abc"))
        assert a == b

    def test_draw_does_not_mutate_deck(self):
        deck = get_deck()
        before = [c.code for c in deck]
        draw(deck, get_spread("celtic-cross"), rng=random.Random(5))
        assert [c.code for c in deck] == before

    def test_spread_larger_than_deck(self):
        deck = get_deck()[:3]
        with pytest.raises(InvalidRequest):
            draw(deck, _spread(4))

    def test_whole_deck_spread(self):
        deck = get_deck()[:5]
        drawn = draw(deck, _spread(5), rng=random.Random(9))
        assert sorted(d.code for d in drawn) == sorted(c.code for c in deck)

    def test_duplicate_codes_in_deck(self):
        deck = get_deck()[:3]
        with pytest.raises(InvalidRequest):
            draw(deck + [deck[0]], _spread(2))


class TestManualDraw:
    def test_binds_codes_in_order(self):
        drawn = draw_manual(get_deck(), ["00", "W01", "P14"], get_spread("three-card"), rng=random.Random(1))
        assert [d.code for d in drawn] == ["00", "W01", "P14"]
        assert [d.position for d in drawn] == ["Past", "Present", "Future"]

    @pytest.mark.parametrize(
        "codes",
        [
            ["00", "01"],
            ["00", "00", "01"],
            ["00", "01", "NOPE"],
        ],
    )
    def test_rejects_bad_selection(self, codes):
        with pytest.raises(InvalidRequest):
            draw_manual(get_deck(), codes, get_spread("three-card"))


class TestHexagram:
    def test_no_changing_lines(self):
        cast = hexagram_from_lines([7, 7, 7, 8, 8, 8])
        assert cast.primary.number == 11
        assert cast.changing_lines == []
        assert cast.resulting is None

    def test_old_yang_changes_to_yin(self):
        cast = hexagram_from_lines([9, 7, 7, 7, 7, 7])
        assert cast.primary.number == 1
        assert cast.changing_lines == [1]
        assert cast.resulting.number == 44

    def test_old_yin_changes_to_yang(self):
        cast = hexagram_from_lines([6, 8, 8, 8, 8, 8])
        assert cast.primary.number == 2
        assert cast.resulting.number == 24

    @pytest.mark.parametrize("lines", [[7, 7, 7], [7, 7, 7, 7, 7, 5]])
    def test_invalid_lines(self, lines):
        with pytest.raises(InvalidRequest):
            hexagram_from_lines(lines)

    def test_unknown_method(self):
        with pytest.raises(InvalidRequest):
            cast_lines("dice")

    def test_coin_line_odds(self):
        rng = random.Random(7)
        counts = Counter(v for _ in range(4000) for v in cast_lines("coins", rng))
        total = sum(counts.values())
        assert abs(counts[6] / total - 1 / 8) < 0.02
        assert abs(counts[7] / total - 3 / 8) < 0.02
        assert abs(counts[8] / total - 3 / 8) < 0.02
        assert abs(counts[9] / total - 1 / 8) < 0.02

    def test_yarrow_line_odds(self):
        rng = random.Random(11)
        counts = Counter(v for _ in range(4000) for v in cast_lines("yarrow", rng))
        total = sum(counts.values())
        assert abs(counts[6] / total - 1 / 16) < 0.02
        assert abs(counts[8] / total - 7 / 16) < 0.02

    def test_cast_is_consistent(self):
        cast = cast_hexagram("coins", random.Random(2))
        assert cast.method == "coins"
        assert cast.changing_lines == [i + 1 for i, v in enumerate(cast.lines) if v in (6, 9)]
        assert (cast.resulting is None) == (not cast.changing_lines)
