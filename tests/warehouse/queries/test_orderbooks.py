"""Unit tests for the orderbook-rate query builder.

Tests cover:
1. Normal and reverse market predicates in the orderbooks stage
2. Bid/ask aggregation, mid-price and the NOT NULL filter on the outer stage
3. Time filter present only when both bounds are given
4. Reciprocal rates via the 1/mid-price branch when the pair is swapped
5. Row limit and table names from config
"""

import re

import pytest

from ledger_rates.config import WarehouseConfig
from ledger_rates.warehouse.models import Asset, RateRequest
from ledger_rates.warehouse.queries.orderbooks import (
    MID_PRICE,
    build_orderbook_rate_query,
    market_match,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_BASE_IS_SOURCE_RE = re.compile(
    r'CASE WHEN orderbooks\.base_code="([^"]*)" AND orderbooks\.base_issuer="([^"]*)" THEN'
)


def _evaluate_orderbook_rate(
    sql: str, market_base: Asset, best_bid: float, best_ask: float
) -> float:
    """Apply the outer CASE expression to one stored market bucket."""
    m = _BASE_IS_SOURCE_RE.search(sql)
    assert m is not None
    mid = (best_ask + best_bid) / 2
    if (market_base.code, market_base.issuer) == m.group(1, 2):
        return mid
    return 1 / mid


def _request(source: Asset, dest: Asset, **kwargs) -> RateRequest:
    return RateRequest(source=source, dest=dest, **kwargs)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestMarketMatch:
    """Market predicate text."""

    def test_market_match(self, ngnt: Asset, eurt: Asset) -> None:
        assert market_match(ngnt, eurt) == (
            f'(M.base_code="NGNT" AND M.base_issuer="{ngnt.issuer}"'
            f' AND M.counter_code="EURT" AND M.counter_issuer="{eurt.issuer}")'
        )


class TestBuildOrderbookRateQuery:
    """Structure of the generated SQL."""

    def test_end_to_end_ledger_query(
        self, ngnt: Asset, eurt: Asset, warehouse_config: WarehouseConfig
    ) -> None:
        sql = build_orderbook_rate_query(
            _request(ngnt, eurt, start_time="1000", end_time="2000", aggregate_by="ledger"),
            warehouse_config,
        )
        normal = market_match(ngnt, eurt)
        reverse = market_match(eurt, ngnt)

        assert sql.startswith(
            'WITH orderbooks AS ( SELECT FORMAT("Ledger %d", E.ledger_id) AS title, '
            "M.base_code, M.base_issuer, M.counter_code, M.counter_issuer,"
        )
        assert f" WHERE ({normal} OR {reverse})" in sql
        assert (
            " AND L.closed_at BETWEEN TIMESTAMP_SECONDS(1000) AND TIMESTAMP_SECONDS(2000)"
            " GROUP BY title, M.base_code, M.base_issuer, M.counter_code, M.counter_issuer)"
        ) in sql
        assert sql.endswith(" ORDER BY orderbooks.title ASC LIMIT 100")

    def test_bid_and_ask_aggregation(
        self, ngnt: Asset, eurt: Asset, warehouse_config: WarehouseConfig
    ) -> None:
        sql = build_orderbook_rate_query(_request(ngnt, eurt), warehouse_config)
        assert (
            'ARRAY_AGG(CASE WHEN O.action="b" THEN O.price END IGNORE NULLS ORDER BY O.price DESC) AS bidPrices'
            in sql
        )
        assert (
            'ARRAY_AGG(CASE WHEN O.action="s" THEN O.price END IGNORE NULLS ORDER BY O.price ASC) AS askPrices'
            in sql
        )

    def test_joins(self, ngnt: Asset, eurt: Asset, warehouse_config: WarehouseConfig) -> None:
        sql = build_orderbook_rate_query(_request(ngnt, eurt), warehouse_config)
        assert " FROM `hubble-261722.liquidity_data.fact_offer_events` AS E" in sql
        assert (
            " INNER JOIN `hubble-261722.liquidity_data.dim_offers` O"
            " ON (E.offer_instance_id = O.dim_offer_id)"
        ) in sql
        assert " INNER JOIN `hubble-261722.liquidity_data.dim_markets` M ON (M.market_id = O.market_id)" in sql
        assert (
            " INNER JOIN `hubble-261722.crypto_stellar_internal.history_ledgers` L"
            " ON (L.sequence = E.ledger_id)"
        ) in sql

    def test_incomplete_books_are_filtered(
        self, ngnt: Asset, eurt: Asset, warehouse_config: WarehouseConfig
    ) -> None:
        sql = build_orderbook_rate_query(_request(ngnt, eurt), warehouse_config)
        assert f" FROM orderbooks WHERE {MID_PRICE} IS NOT NULL" in sql

    def test_rate_case_inverts_for_reversed_market(
        self, ngnt: Asset, eurt: Asset, warehouse_config: WarehouseConfig
    ) -> None:
        sql = build_orderbook_rate_query(_request(ngnt, eurt), warehouse_config)
        assert (
            f' SELECT orderbooks.title, CASE WHEN orderbooks.base_code="NGNT"'
            f' AND orderbooks.base_issuer="{ngnt.issuer}" THEN {MID_PRICE}'
            f" ELSE 1/({MID_PRICE}) END AS rate FROM orderbooks"
        ) in sql

    def test_no_time_filter_without_bounds(
        self, ngnt: Asset, eurt: Asset, warehouse_config: WarehouseConfig
    ) -> None:
        sql = build_orderbook_rate_query(_request(ngnt, eurt), warehouse_config)
        assert "BETWEEN" not in sql

    def test_day_titles(self, ngnt: Asset, eurt: Asset, warehouse_config: WarehouseConfig) -> None:
        sql = build_orderbook_rate_query(_request(ngnt, eurt, aggregate_by="day"), warehouse_config)
        assert 'SELECT FORMAT_DATE("%Y-%m-%d", DATE(L.closed_at, "UTC")) AS title,' in sql

    def test_row_limit_and_tables_from_config(self, ngnt: Asset, eurt: Asset) -> None:
        cfg = WarehouseConfig(
            row_limit=3,
            offer_events_table="p.l.events",
            offers_table="p.l.offers",
            markets_table="p.l.markets",
            orderbook_ledgers_table="p.s.ledgers",
        )
        sql = build_orderbook_rate_query(_request(ngnt, eurt), cfg)
        assert sql.endswith("LIMIT 3")
        for name in ("p.l.events", "p.l.offers", "p.l.markets", "p.s.ledgers"):
            assert f"`{name}`" in sql


class TestOrderbookRateOrientation:
    """Mid-price is inverted when the market stores the reversed pair."""

    @pytest.mark.parametrize("market_base_is_ngnt", [True, False])
    def test_swapped_pair_gives_reciprocal(
        self,
        ngnt: Asset,
        eurt: Asset,
        warehouse_config: WarehouseConfig,
        market_base_is_ngnt: bool,
    ) -> None:
        market_base = ngnt if market_base_is_ngnt else eurt
        sql_ab = build_orderbook_rate_query(_request(ngnt, eurt), warehouse_config)
        sql_ba = build_orderbook_rate_query(_request(eurt, ngnt), warehouse_config)

        rate_ab = _evaluate_orderbook_rate(sql_ab, market_base, best_bid=0.0024, best_ask=0.0026)
        rate_ba = _evaluate_orderbook_rate(sql_ba, market_base, best_bid=0.0024, best_ask=0.0026)

        assert rate_ab == pytest.approx(1 / rate_ba)

    def test_normal_market_uses_mid_price(
        self, ngnt: Asset, eurt: Asset, warehouse_config: WarehouseConfig
    ) -> None:
        sql = build_orderbook_rate_query(_request(ngnt, eurt), warehouse_config)
        assert _evaluate_orderbook_rate(sql, ngnt, 0.0024, 0.0026) == pytest.approx(0.0025)

    def test_reversed_market_uses_reciprocal(
        self, ngnt: Asset, eurt: Asset, warehouse_config: WarehouseConfig
    ) -> None:
        sql = build_orderbook_rate_query(_request(ngnt, eurt), warehouse_config)
        # market quotes NGNT per EURT around 400
        assert _evaluate_orderbook_rate(sql, eurt, 399.0, 401.0) == pytest.approx(0.0025)
