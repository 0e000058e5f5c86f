"""Tests for the data source aggregator."""
import asyncio

import pytest

from asklinc.data.aggregator import DataSourceAggregator
from asklinc.data.providers.base import ProviderUnavailable
from asklinc.data.schemas import ContextFlags, Tier


ECONOMIC_TTL = 24 * 60 * 60


@pytest.fixture
def aggregator(cache, fred_provider, market_provider, search_provider):
    return DataSourceAggregator(
        providers={
            "fred": fred_provider,
            "alpha-vantage": market_provider,
            "search": search_provider,
        },
        cache=cache,
        provider_timeout=1.0,
    )


def _statuses(context):
    return {a.source_id: a.status for a in context.source_attributions}


# ============================================================================
# TIER GATING
# ============================================================================

class TestTierGating:
    """Sources above the caller's tier are never fetched."""

    @pytest.mark.asyncio
    async def test_starter_only_gets_account_data(
        self, aggregator, fred_provider, market_provider, sample_accounts, sample_transactions
    ):
        context = await aggregator.build_context(Tier.STARTER, sample_accounts, sample_transactions)

        assert context.accounts == sample_accounts
        assert context.transactions == sample_transactions
        assert context.economic_indicators is None
        assert context.live_market_data is None
        assert context.source_attributions == []
        assert fred_provider.calls == []
        assert market_provider.calls == []

    @pytest.mark.asyncio
    async def test_starter_economic_indicators_carry_upgrade_hint(self, aggregator):
        context = await aggregator.build_context(Tier.STARTER, [], [])

        omitted = {o.source_id: o for o in context.omitted_sources}
        assert omitted["fred-cpi"].reason == "tier"
        assert "Upgrade to Standard" in omitted["fred-cpi"].upgrade_hint
        assert context.upgrade_suggestions
        assert "Limited to account data only" in context.limitations

    @pytest.mark.asyncio
    async def test_standard_gets_indicators_not_market_data(self, aggregator, market_provider):
        context = await aggregator.build_context(Tier.STANDARD, [], [])

        assert context.economic_indicators.cpi.value == 313.5
        assert context.economic_indicators.fed_rate.value == 5.33
        assert context.economic_indicators.unemployment.value == 4.0
        assert context.live_market_data is None
        assert market_provider.calls == []

    @pytest.mark.asyncio
    async def test_premium_gets_live_market_data(self, aggregator):
        context = await aggregator.build_context(Tier.PREMIUM, [], [])

        assert context.live_market_data.treasury_yields[0].yield_pct == 4.25
        assert context.live_market_data.stock_quotes[0].symbol == "SPY"
        assert context.omitted_sources == []


# ============================================================================
# CACHING
# ============================================================================

class TestCaching:

    @pytest.mark.asyncio
    async def test_provider_called_once_within_ttl(self, aggregator, fred_provider, clock):
        await aggregator.build_context(Tier.STANDARD, [], [])
        clock.advance(ECONOMIC_TTL - 1)
        context = await aggregator.build_context(Tier.STANDARD, [], [])

        assert fred_provider.calls.count("CPIAUCSL") == 1
        assert _statuses(context)["fred-cpi"] == "cached"

    @pytest.mark.asyncio
    async def test_provider_called_again_after_expiry(self, aggregator, fred_provider, clock):
        await aggregator.build_context(Tier.STANDARD, [], [])
        clock.advance(ECONOMIC_TTL + 1)
        context = await aggregator.build_context(Tier.STANDARD, [], [])

        assert fred_provider.calls.count("CPIAUCSL") == 2
        assert _statuses(context)["fred-cpi"] == "live"

    @pytest.mark.asyncio
    async def test_force_refresh_bypasses_cache(self, aggregator, fred_provider):
        await aggregator.build_context(Tier.STANDARD, [], [])
        await aggregator.build_context(Tier.STANDARD, [], [], ContextFlags(force_refresh=True))

        assert fred_provider.calls.count("CPIAUCSL") == 2

    @pytest.mark.asyncio
    async def test_cache_shared_across_users(self, aggregator, fred_provider, sample_accounts):
        await aggregator.build_context(Tier.STANDARD, sample_accounts, [])
        await aggregator.build_context(Tier.STANDARD, [], [])

        assert fred_provider.calls.count("FEDFUNDS") == 1


# ============================================================================
# FAULT ISOLATION
# ============================================================================

class TestFaultIsolation:
    """One failing provider never fails the whole context."""

    @pytest.mark.asyncio
    async def test_market_failure_keeps_other_data(
        self, cache, fred_provider, make_provider, sample_accounts
    ):
        failing = make_provider({
            "treasury_yields": ProviderUnavailable("Alpha Vantage", "rate limited"),
            "stock_quotes": ProviderUnavailable("Alpha Vantage", "rate limited"),
        })
        aggregator = DataSourceAggregator(
            providers={"fred": fred_provider, "alpha-vantage": failing},
            cache=cache,
        )

        context = await aggregator.build_context(Tier.PREMIUM, sample_accounts, [])

        assert context.accounts == sample_accounts
        assert context.economic_indicators.cpi is not None
        assert context.live_market_data is None
        statuses = _statuses(context)
        assert statuses["alpha-vantage-treasury-yields"] == "unavailable"
        assert statuses["alpha-vantage-stock-data"] == "unavailable"
        omitted = {o.source_id: o.reason for o in context.omitted_sources}
        assert omitted["alpha-vantage-stock-data"] == "unavailable"

    @pytest.mark.asyncio
    async def test_one_indicator_failing(self, cache, make_provider, make_point):
        fred = make_provider({
            "CPIAUCSL": RuntimeError("boom"),
            "FEDFUNDS": make_point(5.33),
        })
        aggregator = DataSourceAggregator(providers={"fred": fred}, cache=cache)

        context = await aggregator.build_context(Tier.STANDARD, [], [])

        assert context.economic_indicators.cpi is None
        assert context.economic_indicators.fed_rate.value == 5.33
        assert _statuses(context)["fred-cpi"] == "unavailable"

    @pytest.mark.asyncio
    async def test_stale_value_served_when_provider_fails(
        self, cache, clock, make_provider, make_point
    ):
        fred = make_provider({"CPIAUCSL": make_point(313.5)})
        aggregator = DataSourceAggregator(providers={"fred": fred}, cache=cache)
        await aggregator.build_context(Tier.STANDARD, [], [])

        clock.advance(ECONOMIC_TTL + 1)
        fred.values["CPIAUCSL"] = ProviderUnavailable("FRED", "HTTP 500")
        context = await aggregator.build_context(Tier.STANDARD, [], [])

        assert context.economic_indicators.cpi.value == 313.5
        attribution = next(a for a in context.source_attributions if a.source_id == "fred-cpi")
        assert attribution.status == "stale"
        assert attribution.detail == "HTTP 500"

    @pytest.mark.asyncio
    async def test_slow_provider_times_out(self, cache, make_provider, make_point):
        class SlowProvider(make_provider):
            async def get(self, topic):
                await asyncio.sleep(5)
                return make_point(1.0)

        aggregator = DataSourceAggregator(
            providers={"fred": SlowProvider()},
            cache=cache,
            provider_timeout=0.05,
        )

        context = await aggregator.build_context(Tier.STANDARD, [], [])

        assert context.economic_indicators is None
        assert set(_statuses(context).values()) == {"unavailable"}

    @pytest.mark.asyncio
    async def test_missing_provider_reported_unavailable(self, cache):
        aggregator = DataSourceAggregator(providers={}, cache=cache)

        context = await aggregator.build_context(Tier.PREMIUM, [], [])

        assert context.economic_indicators is None
        assert context.live_market_data is None
        assert all(a.status == "unavailable" for a in context.source_attributions)


# ============================================================================
# SEARCH
# ============================================================================

class TestSearch:

    @pytest.mark.asyncio
    async def test_no_search_without_query(self, aggregator, search_provider):
        context = await aggregator.build_context(Tier.STANDARD, [], [])

        assert context.search_results is None
        assert search_provider.calls == []

    @pytest.mark.asyncio
    async def test_search_results_included(self, aggregator, search_provider):
        flags = ContextFlags(search_query="chase current rates today 2024 cd rate")
        context = await aggregator.build_context(Tier.STANDARD, [], [], flags)

        assert search_provider.calls == ["chase current rates today 2024 cd rate"]
        assert context.search_results[0].url.startswith("https://www.bankrate.com")
        assert _statuses(context)["web-search"] == "live"

    @pytest.mark.asyncio
    async def test_search_cache_keyed_by_query(self, aggregator, search_provider):
        await aggregator.build_context(Tier.STANDARD, [], [], ContextFlags(search_query="cd rate 2024"))
        await aggregator.build_context(Tier.STANDARD, [], [], ContextFlags(search_query="CD  rate 2024"))
        await aggregator.build_context(Tier.STANDARD, [], [], ContextFlags(search_query="heloc rate 2024"))

        assert search_provider.calls == ["cd rate 2024", "heloc rate 2024"]

    @pytest.mark.asyncio
    async def test_starter_never_searches(self, aggregator, search_provider):
        await aggregator.build_context(Tier.STARTER, [], [], ContextFlags(search_query="cd rate"))

        assert search_provider.calls == []
