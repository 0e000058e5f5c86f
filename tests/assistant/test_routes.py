"""Tests for the HTTP surface."""
import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient

from asklinc.accounts.store import InMemoryAccountStore
from asklinc.assistant import routes
from asklinc.assistant.query_enhancer import QueryEnhancer
from asklinc.assistant.responder import ModelFailure, ModelProvider
from asklinc.data.aggregator import DataSourceAggregator
from asklinc.data.cache import source_cache
from asklinc.main import app
from asklinc.middleware.rate_limit import limiter


class ScriptedModel(ModelProvider):

    def __init__(self, answer=None, error=None):
        self.answer = answer
        self.error = error

    async def complete(self, messages):
        if self.error:
            raise self.error
        return self.answer


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def model():
    return ScriptedModel(answer="Account_1 holds $4,250.12.")


@pytest.fixture
def client(sample_accounts, sample_transactions, cache, fred_provider, model):
    store = InMemoryAccountStore()
    store.load_user("user_1", sample_accounts, sample_transactions)
    aggregator = DataSourceAggregator(providers={"fred": fred_provider}, cache=cache)

    app.dependency_overrides[routes.get_account_store] = lambda: store
    app.dependency_overrides[routes.get_aggregator] = lambda: aggregator
    app.dependency_overrides[routes.get_model] = lambda: model
    app.dependency_overrides[routes.get_enhancer] = lambda: QueryEnhancer([], [])
    with patch.object(limiter, "enabled", False):
        yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================================
# ASK
# ============================================================================

class TestAskEndpoint:

    def test_answer_with_real_names(self, client):
        response = client.post("/api/ask", json={
            "user_id": "user_1",
            "question": "What's in my checking account?",
            "tier": "standard",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["answer"] == "Total Checking holds $4,250.12."
        assert any(a["source_id"] == "fred-cpi" for a in data["source_attributions"])

    def test_default_tier_is_starter(self, client):
        response = client.post("/api/ask", json={"user_id": "user_1", "question": "Balance?"})

        assert response.status_code == 200
        assert response.json()["source_attributions"] == []
        assert response.json()["upgrade_suggestions"]

    def test_model_failure_returns_generic_503(self, client, model):
        model.error = ModelFailure("upstream 500: internal details", attempts=2)

        response = client.post("/api/ask", json={"user_id": "user_1", "question": "Balance?"})

        assert response.status_code == 503
        assert "internal details" not in response.text

    def test_empty_question_rejected(self, client):
        response = client.post("/api/ask", json={"user_id": "user_1", "question": ""})
        assert response.status_code == 422

    def test_history_accepted(self, client):
        response = client.post("/api/ask", json={
            "user_id": "user_1",
            "question": "And savings?",
            "conversation_history": [{"question": "Checking?", "answer": "$4,250.12"}],
        })
        assert response.status_code == 200


# ============================================================================
# TIERS AND CACHE
# ============================================================================

class TestTierEndpoint:

    def test_standard_tier(self, client):
        response = client.get("/api/tiers/standard")

        assert response.status_code == 200
        data = response.json()
        assert data["next_tier"] == "premium"
        assert "fred-cpi" in data["available_sources"]
        assert {s["source_id"] for s in data["unavailable_sources"]} == {
            "alpha-vantage-treasury-yields", "alpha-vantage-stock-data",
        }

    def test_premium_has_no_next_tier(self, client):
        data = client.get("/api/tiers/premium").json()
        assert data["next_tier"] is None
        assert data["unavailable_sources"] == []

    def test_unknown_tier(self, client):
        assert client.get("/api/tiers/gold").status_code == 404


class TestRefreshEndpoint:

    def test_clears_shared_cache(self, client):
        source_cache.clear()
        source_cache.set("fred-cpi", 313.5, ttl=60)
        source_cache.set("fred-fed-rate", 5.33, ttl=60)

        response = client.post("/api/market-data/refresh")

        assert response.status_code == 200
        assert response.json() == {"invalidated": 2}
        assert source_cache.stats()["size"] == 0


class TestHealth:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestRefreshSingleSource:

    def test_clears_only_named_source(self, client):
        source_cache.clear()
        source_cache.set("web-search:cd rate 2026", [], ttl=60)
        source_cache.set("web-search:heloc rate 2026", [], ttl=60)
        source_cache.set("fred-cpi", 313.5, ttl=60)

        response = client.post("/api/market-data/refresh", params={"source_id": "web-search"})

        assert response.json() == {"invalidated": 2}
        assert source_cache.stats()["keys"] == ["fred-cpi"]
        source_cache.clear()

    def test_unknown_source(self, client):
        response = client.post("/api/market-data/refresh", params={"source_id": "crystal-ball"})
        assert response.status_code == 404
