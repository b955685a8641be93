"""
Tests for cross-bookmaker arbitrage detection.
Run with: pytest tests/test_arbitrage.py -v
"""

import pytest

from football_edge.core.arbitrage import (
    BookmakerQuote,
    best_prices,
    find_arbitrage,
    stake_plan,
)
from football_edge.core.markets import Market, Outcome


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _q(market, outcome, odds, book):
    return BookmakerQuote(
        market=market, outcome=outcome, odds=odds,
        bookmaker_id=hash(book) % 1000, bookmaker_name=book,
    )


def _match_winner(book, home, draw, away):
    return [
        _q(Market.MATCH_WINNER, Outcome.HOME, home, book),
        _q(Market.MATCH_WINNER, Outcome.DRAW, draw, book),
        _q(Market.MATCH_WINNER, Outcome.AWAY, away, book),
    ]


def _btts(book, yes, no):
    return [_q(Market.BTTS, Outcome.YES, yes, book), _q(Market.BTTS, Outcome.NO, no, book)]


# ---------------------------------------------------------------------------
# Best prices
# ---------------------------------------------------------------------------

class TestBestPrices:
    """Max price per outcome across books"""

    def test_two_book_match_winner(self):
        quotes = _match_winner("X", 2.10, 4.00, 2.00) + _match_winner("Y", 2.05, 3.90, 2.10)
        best = best_prices(quotes, Market.MATCH_WINNER)
        assert best[Outcome.HOME].odds == 2.10
        assert best[Outcome.HOME].bookmaker_name == "X"
        assert best[Outcome.DRAW].odds == 4.00
        assert best[Outcome.DRAW].bookmaker_name == "X"
        assert best[Outcome.AWAY].odds == 2.10
        assert best[Outcome.AWAY].bookmaker_name == "Y"

    def test_first_quote_wins_ties(self):
        quotes = _btts("A", 1.9, 1.9) + _btts("B", 1.9, 1.9)
        best = best_prices(quotes, Market.BTTS)
        assert best[Outcome.YES].bookmaker_name == "A"

    def test_other_markets_ignored(self):
        quotes = _btts("A", 1.9, 1.9)
        assert best_prices(quotes, Market.MATCH_WINNER) == {}


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

class TestFindArbitrage:
    """Inverse-sum test per market"""

    def test_normal_two_book_market_has_no_arbitrage(self):
        quotes = _match_winner("X", 2.10, 4.00, 2.00) + _match_winner("Y", 2.05, 3.90, 2.10)
        # 1/2.10 + 1/4.00 + 1/2.10 > 1
        assert 1 / 2.10 + 1 / 4.00 + 1 / 2.10 > 1
        assert find_arbitrage(quotes) == []

    def test_btts_arbitrage(self):
        quotes = _btts("A", 2.10, 1.70) + _btts("B", 1.75, 2.05)
        arbs = find_arbitrage(quotes)
        assert len(arbs) == 1
        arb = arbs[0]
        inv = 1 / 2.10 + 1 / 2.05
        assert arb.market is Market.BTTS
        assert arb.inverse_odds_sum == pytest.approx(inv)
        assert arb.roi == pytest.approx(1 / inv - 1)
        assert [leg.bookmaker_name for leg in arb.legs] == ["A", "B"]

    def test_three_way_arbitrage(self):
        quotes = (
            _match_winner("X", 3.00, 3.20, 2.50)
            + _match_winner("Y", 2.40, 4.00, 2.60)
            + _match_winner("Z", 2.20, 3.50, 3.10)
        )
        arbs = find_arbitrage(quotes)
        assert [a.market for a in arbs] == [Market.MATCH_WINNER]
        assert arbs[0].inverse_odds_sum == pytest.approx(1 / 3.0 + 1 / 4.0 + 1 / 3.1)

    def test_min_roi_filters(self):
        quotes = _btts("A", 2.10, 1.70) + _btts("B", 1.75, 2.05)
        roi = 1 / (1 / 2.10 + 1 / 2.05) - 1
        assert find_arbitrage(quotes, min_roi=roi - 0.001)
        assert find_arbitrage(quotes, min_roi=roi + 0.001) == []

    def test_incomplete_market_skipped(self):
        quotes = [_q(Market.BTTS, Outcome.YES, 5.0, "A")]
        assert find_arbitrage(quotes) == []

    def test_exact_break_even_not_reported(self):
        quotes = _btts("A", 2.0, 1.5) + _btts("B", 1.5, 2.0)
        assert find_arbitrage(quotes) == []

    def test_markets_reported_in_check_order(self):
        quotes = (
            _btts("A", 2.10, 1.70) + _btts("B", 1.75, 2.05)
            + [
                _q(Market.OVER_UNDER_25, Outcome.OVER, 2.20, "A"),
                _q(Market.OVER_UNDER_25, Outcome.UNDER, 2.15, "B"),
            ]
        )
        assert [a.market for a in find_arbitrage(quotes)] == [Market.OVER_UNDER_25, Market.BTTS]

    @pytest.mark.parametrize("prices", [
        (2.10, 2.05),
        (3.0, 1.6),
        (1.02, 60.0),
        (2.5, 1.75),
    ])
    def test_roi_positive_and_stakes_sum_to_100(self, prices):
        yes, no = prices
        quotes = _btts("A", yes, 1.01) + _btts("B", 1.01, no)
        for arb in find_arbitrage(quotes):
            assert arb.roi > 0
            assert sum(s.stake_pct for s in arb.stake_plan) == pytest.approx(100.0, abs=1e-6)


class TestStakePlan:
    """Equal payout on every leg"""

    def test_equal_payouts(self):
        legs = _match_winner("X", 3.00, 4.00, 3.10)
        plan = stake_plan(legs)
        payouts = [s.stake_pct * s.odds for s in plan]
        assert payouts == pytest.approx([payouts[0]] * 3)

    def test_to_dict_rounding(self):
        quotes = _btts("A", 2.10, 1.70) + _btts("B", 1.75, 2.05)
        d = find_arbitrage(quotes)[0].to_dict(fixture_id=77)
        assert d["fixtureId"] == 77
        assert d["market"] == "btts"
        assert d["invSum"] == round(1 / 2.10 + 1 / 2.05, 4)
        assert [s["stakePct"] for s in d["stakePlan"]] == [49.4, 50.6]
        assert d["legs"][0]["selection"] == "yes"
