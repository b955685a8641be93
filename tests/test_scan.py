"""
Tests for the league scanner.
Run with: pytest tests/test_scan.py -v
"""

import asyncio
import json

import pytest

from football_edge.core.exceptions import IncompleteDataError
from football_edge.services.cache import ExpiringCache
from football_edge.services.fixtures import FixtureService
from football_edge.services.scan import (
    FixtureScanner,
    ScanRequest,
    passes_filters,
    severity_from_bet,
)

from conftest import FakeDataSource, full_book, results


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _fixture_items(ids):
    return [
        {"fixtureId": i, "date": f"2024-09-{i:02d}T15:00:00+03:00", "status": "NS",
         "league": "Premier League", "round": "Regular Season - 4",
         "home": f"Home {i}", "away": f"Away {i}"}
        for i in ids
    ]


def _source(n=10, **kwargs):
    ids = list(range(1, n + 1))
    kwargs.setdefault("odds", {i: [full_book()] for i in ids})
    return FakeDataSource(fixtures=_fixture_items(ids), **kwargs)


def _scanner(source, clock):
    fixture_service = FixtureService(source, ExpiringCache(60, clock=clock, name="fixtures"))
    return FixtureScanner(
        source,
        fixture_service,
        ExpiringCache(60, clock=clock, name="scan"),
        preferred_bookmaker="Bet365",
    )


def _request(**kwargs):
    params = dict(league_key="epl", season=2024, date_from="2024-09-01", date_to="2024-09-30")
    params.update(kwargs)
    return ScanRequest(**params)


def _scan(scanner, **kwargs):
    return asyncio.run(scanner.scan(_request(**kwargs)))


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

class TestScanOrchestration:
    """Worker pool, error isolation, payload shape"""

    def test_one_failure_does_not_sink_the_batch(self, clock):
        source = _source(10, failing_odds={4})
        payload = _scan(_scanner(source, clock), concurrency=3)

        assert payload["count"] == 10
        assert len(payload["results"]) == 9
        assert len(payload["errors"]) == 1
        assert payload["errors"][0]["fixtureId"] == 4
        assert "odds for 4" in payload["errors"][0]["error"]
        assert {r["fixtureId"] for r in payload["results"]} == set(range(1, 11)) - {4}

    def test_every_fixture_processed_once(self, clock):
        source = _source(10)
        _scan(_scanner(source, clock), concurrency=4)
        assert source.calls["meta"] == 10
        assert source.calls["odds"] == 10
        assert source.calls["recent"] == 20

    @pytest.mark.parametrize("concurrency", [1, 3, 12])
    def test_result_independent_of_concurrency(self, clock, concurrency):
        payload = _scan(_scanner(_source(7), clock), concurrency=concurrency)
        assert [r["fixtureId"] for r in payload["results"]] == list(range(1, 8))

    def test_payload_shape(self, clock):
        payload = _scan(_scanner(_source(2), clock), min_edge=0.07, market="btts", min_odds=1.5)
        assert payload["leagueKey"] == "epl"
        assert payload["from"] == "2024-09-01"
        assert payload["to"] == "2024-09-30"
        assert payload["filters"] == {
            "minEdge": 0.07, "onlyValue": False, "minOdds": 1.5, "market": "btts",
        }
        assert payload["cached"] is False
        assert len(payload["fixtures"]) == 2

    def test_limit_truncates(self, clock):
        source = _source(10)
        payload = _scan(_scanner(source, clock), limit=3)
        assert payload["count"] == 3
        assert source.calls["meta"] == 3

    def test_fixture_without_id_skipped(self, clock):
        source = _source(2)
        source.fixtures.append({"fixtureId": None, "home": "?", "away": "?"})
        payload = _scan(_scanner(source, clock))
        assert payload["count"] == 3
        assert len(payload["results"]) == 2
        assert payload["errors"] == []

    def test_unknown_league(self, clock):
        with pytest.raises(IncompleteDataError):
            _scan(_scanner(_source(1), clock), league_key="nope")

    def test_invalid_market_filter(self):
        with pytest.raises(ValueError):
            _request(market="corners")


class TestScanCache:
    """Identical requests inside the TTL are served from cache"""

    def test_second_scan_is_cached_without_calls(self, clock):
        source = _source(5)
        scanner = _scanner(source, clock)
        first = _scan(scanner, concurrency=2)
        calls_after_first = dict(source.calls)

        clock.advance(30)
        second = _scan(scanner, concurrency=2)

        assert second["cached"] is True
        assert source.calls == calls_after_first
        assert json.dumps({**second, "cached": False}, sort_keys=True) == json.dumps(first, sort_keys=True)

    def test_mutating_a_result_does_not_touch_the_cache(self, clock):
        source = _source(2)
        scanner = _scanner(source, clock)
        first = _scan(scanner)
        first["results"].clear()
        first["fixtures"].pop()
        second = _scan(scanner)
        assert second["cached"] is True
        assert len(second["results"]) == 2
        assert len(second["fixtures"]) == 2

        second["errors"].append({"fixtureId": 99, "error": "x"})
        assert _scan(scanner)["errors"] == []

    def test_fixture_list_cache_is_isolated(self, clock):
        service = FixtureService(_source(3), ExpiringCache(60, clock=clock))
        first = asyncio.run(service.get_fixtures("epl", 2024, "2024-09-01", "2024-09-30"))
        first["fixtures"].clear()
        again = asyncio.run(service.get_fixtures("epl", 2024, "2024-09-01", "2024-09-30"))
        assert again["cached"] is True
        assert len(again["fixtures"]) == 3

    def test_different_parameters_miss(self, clock):
        source = _source(3)
        scanner = _scanner(source, clock)
        _scan(scanner, min_edge=0.05)
        second = _scan(scanner, min_edge=0.06)
        assert second["cached"] is False
        assert source.calls["meta"] == 6
        # fixture list itself was still cached
        assert source.calls["fixtures"] == 1

    def test_expired_entry_recomputed(self, clock):
        source = _source(3)
        scanner = _scanner(source, clock)
        _scan(scanner)
        clock.advance(60)
        again = _scan(scanner)
        assert again["cached"] is False
        assert source.calls["meta"] == 6


# ---------------------------------------------------------------------------
# Filters, severity, ordering
# ---------------------------------------------------------------------------

class TestScanFilters:
    """Per-fixture ranked list filtering with fallback"""

    def _top(self, payload, fixture_id=1):
        for r in payload["results"]:
            if r["fixtureId"] == fixture_id:
                return r["prediction"]["top"]
        raise AssertionError(f"fixture {fixture_id} missing")

    def test_market_filter(self, clock):
        top = self._top(_scan(_scanner(_source(1), clock), market="btts"))
        assert top and all(b["market"] == "btts" for b in top)

    def test_draw_filter(self, clock):
        source = _source(1, odds={1: [full_book(draw=3.9)]})
        top = self._top(_scan(_scanner(source, clock), market="draw"))
        assert [(b["market"], b["selection"]) for b in top] == [("1x2", "draw")]

    def test_min_odds_filter(self, clock):
        top = self._top(_scan(_scanner(_source(1), clock), min_odds=3.0))
        assert top and all(b["odds"] >= 3.0 for b in top)

    def test_empty_filter_falls_back_to_unfiltered(self, clock):
        unfiltered = self._top(_scan(_scanner(_source(1), clock)))
        fallback = self._top(_scan(_scanner(_source(1), clock), min_odds=999))
        assert [b["selection"] for b in fallback] == [b["selection"] for b in unfiltered]

    def test_every_entry_has_severity(self, clock):
        top = self._top(_scan(_scanner(_source(1), clock)))
        assert all(b["severity"] in {"huge", "value", "none"} for b in top)

    def test_no_odds_prediction_kept_unfiltered(self, clock):
        source = _source(2, odds={1: [full_book()]})
        payload = _scan(_scanner(source, clock), market="btts")
        no_odds = [r for r in payload["results"] if r["fixtureId"] == 2][0]
        assert no_odds["prediction"]["oddsAvailable"] is False
        assert "top" not in no_odds["prediction"]


class TestScanOrdering:
    """Best score first, fixtures without ranked entries last"""

    def test_sorted_by_best_score(self, clock):
        source = _source(
            3,
            odds={
                1: [full_book()],
                2: [full_book(home=1.7, draw=3.6, away=5.0)],
            },
            recent={31: results(*[(3, 0)] * 5)},
        )
        payload = _scan(_scanner(source, clock))
        ids = [r["fixtureId"] for r in payload["results"]]
        assert ids[-1] == 3
        best = [r["prediction"]["top"][0]["score"] for r in payload["results"][:2]]
        assert best == sorted(best, reverse=True)
        assert ids[0] == 2


class TestFilterHelpers:

    BET = {"market": "1x2", "selection": "away", "odds": 4.2, "edge": 0.12, "value": True, "score": 0.1}

    @pytest.mark.parametrize("kwargs,expected", [
        ({}, True),
        ({"market": "1x2"}, True),
        ({"market": "btts"}, False),
        ({"market": "draw"}, False),
        ({"only_value": True}, True),
        ({"min_odds": 4.2}, True),
        ({"min_odds": 4.3}, False),
    ])
    def test_passes_filters(self, kwargs, expected):
        assert passes_filters(self.BET, **kwargs) is expected

    def test_draw_selection(self):
        draw = {**self.BET, "selection": "draw"}
        assert passes_filters(draw, market="draw") is True

    def test_not_value_filtered(self):
        assert passes_filters({**self.BET, "value": False}, only_value=True) is False
        assert passes_filters({}, market="all") is False

    @pytest.mark.parametrize("bet,expected", [
        ({"edge": 0.12, "odds": 4.2, "value": True}, "huge"),
        ({"edge": 0.10, "odds": 3.0, "value": True}, "huge"),
        ({"edge": 0.12, "odds": 2.9, "value": True}, "value"),
        ({"edge": 0.09, "odds": 5.0, "value": True}, "value"),
        ({"edge": 0.02, "odds": 2.0, "value": False}, "none"),
        ({"edge": 0.2, "odds": 6.0, "value": False}, "huge"),
    ])
    def test_severity(self, bet, expected):
        assert severity_from_bet(bet) == expected
