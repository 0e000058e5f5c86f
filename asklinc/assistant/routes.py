"""Assistant API Routes.

Endpoints:
- POST /ask - Answer a question about the caller's finances
- GET /tiers/{tier} - What a subscription tier can and cannot use
- POST /market-data/refresh - Drop cached market data (all, or one source)
"""
import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from asklinc.accounts.store import AccountStore, build_demo_store
from asklinc.assistant import orchestrator, schemas
from asklinc.assistant.query_enhancer import QueryEnhancer
from asklinc.assistant.responder import ModelFailure, ModelProvider, OpenAIModelProvider
from asklinc.config import settings
from asklinc.data.aggregator import DataSourceAggregator, create_aggregator
from asklinc.data.cache import source_cache
from asklinc.data.schemas import Tier
from asklinc.data.sources import tier_registry
from asklinc.middleware.rate_limit import ASK_RATE_LIMIT, limiter

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# DEPENDENCIES
# ============================================================================

@lru_cache
def get_account_store() -> AccountStore:
    return build_demo_store()


@lru_cache
def get_aggregator() -> DataSourceAggregator:
    return create_aggregator()


@lru_cache
def get_model() -> ModelProvider:
    return OpenAIModelProvider()


@lru_cache
def get_enhancer() -> QueryEnhancer:
    return QueryEnhancer(
        institutions=settings.QUERY_INSTITUTIONS,
        rate_terms=settings.QUERY_RATE_TERMS,
        tail_words=settings.QUERY_TAIL_WORDS,
    )


# ============================================================================
# ASK ENDPOINT
# ============================================================================

@router.post("/ask", response_model=schemas.AskResponse)
@limiter.limit(ASK_RATE_LIMIT)
async def ask(
    request: Request,
    body: schemas.AskRequest,
    account_store: AccountStore = Depends(get_account_store),
    aggregator: DataSourceAggregator = Depends(get_aggregator),
    model: ModelProvider = Depends(get_model),
    enhancer: QueryEnhancer = Depends(get_enhancer),
):
    """
    Ask a question about your finances.

    The answer draws on your accounts and transactions, plus economic
    indicators, web search and live market data as your tier allows.
    Real account, institution and merchant names never reach the model.
    """
    try:
        return await orchestrator.ask_question(
            user_id=body.user_id,
            tier=body.tier,
            question=body.question,
            conversation_history=body.conversation_history,
            account_store=account_store,
            aggregator=aggregator,
            model=model,
            enhancer=enhancer,
            force_refresh=body.force_refresh,
        )
    except ModelFailure:
        raise HTTPException(
            status_code=503,
            detail="The assistant is temporarily unavailable. Please try again shortly."
        )


# ============================================================================
# TIER AND CACHE ENDPOINTS
# ============================================================================

@router.get("/tiers/{tier}", response_model=schemas.TierSourcesResponse)
async def get_tier_sources(tier: str):
    """List the data sources a tier can use and what upgrading would add."""
    try:
        resolved = Tier(tier.lower())
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown tier: {tier}")

    return schemas.TierSourcesResponse(
        tier=resolved,
        next_tier=tier_registry.next_tier(resolved),
        available_sources=[s.id for s in tier_registry.available(resolved)],
        unavailable_sources=tier_registry.unavailable(resolved),
        upgrade_suggestions=tier_registry.upgrade_suggestions(resolved),
        limitations=tier_registry.limitations(resolved),
    )


@router.post("/market-data/refresh", response_model=schemas.CacheRefreshResponse)
async def refresh_market_data(source_id: Optional[str] = Query(None)):
    """
    Drop cached external values so the next question refetches.

    With ``source_id`` only that source is dropped (every cached query for
    web search); otherwise the whole cache is cleared.
    """
    if source_id is not None:
        if tier_registry.get(source_id) is None:
            raise HTTPException(status_code=404, detail=f"Unknown data source: {source_id}")
        invalidated = source_cache.invalidate_pattern(source_id)
        logger.info(f"Cache cleared for {source_id} ({invalidated} entries)")
        return schemas.CacheRefreshResponse(invalidated=invalidated)

    invalidated = len(source_cache.stats()["keys"])
    source_cache.clear()
    logger.info(f"Market data cache cleared ({invalidated} entries)")
    return schemas.CacheRefreshResponse(invalidated=invalidated)
