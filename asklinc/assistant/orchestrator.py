"""Assistant Orchestrator - answers one question end to end.

The orchestrator:
1. Loads the caller's accounts and transactions
2. Decides whether the question warrants a web search and rewrites it
3. Builds the tier-aware context through the aggregator
4. Tokenizes everything into a prompt inside a per-request session
5. Calls the model (with retry) and restores real names in its answer
6. Returns the answer with source attributions
"""
import logging
from typing import List, Optional

from asklinc.accounts.store import AccountStore
from asklinc.assistant.prompt_builder import build_prompt
from asklinc.assistant.query_enhancer import QueryEnhancer
from asklinc.assistant.responder import ModelProvider, generate_answer
from asklinc.assistant.schemas import AskResponse, ConversationTurn
from asklinc.config import settings
from asklinc.data.aggregator import DataSourceAggregator
from asklinc.data.schemas import AggregatedContext, ContextFlags, Tier
from asklinc.privacy import convert_to_user_friendly, tokenization_session

logger = logging.getLogger(__name__)


async def ask_question(
    user_id: str,
    tier: str,
    question: str,
    conversation_history: Optional[List[ConversationTurn]] = None,
    *,
    account_store: AccountStore,
    aggregator: DataSourceAggregator,
    model: ModelProvider,
    enhancer: QueryEnhancer,
    force_refresh: bool = False,
) -> AskResponse:
    """
    Answer ``question`` for ``user_id`` at ``tier``.

    Context failures degrade to a prompt without data; only a model that
    fails every attempt raises (ModelFailure).
    """
    resolved_tier = Tier.parse(tier)
    history = conversation_history or []

    context = await _load_context(
        user_id, resolved_tier, question, account_store, aggregator, enhancer, force_refresh
    )

    with tokenization_session(session_id=user_id) as tokenizer:
        prompt = build_prompt(
            context=context,
            tokenizer=tokenizer,
            question=question,
            conversation_history=history,
            max_history_turns=settings.MAX_HISTORY_TURNS,
            max_transactions=settings.MAX_TRANSACTIONS_IN_CONTEXT,
        )
        logger.debug(f"Prompt for {user_id} uses {len(tokenizer)} tokens")

        raw_answer = await generate_answer(model, prompt.to_messages())
        answer = convert_to_user_friendly(raw_answer, tokenizer)

    if context is None:
        return AskResponse(answer=answer)

    return AskResponse(
        answer=answer,
        source_attributions=context.source_attributions,
        omitted_sources=context.omitted_sources,
        upgrade_suggestions=context.upgrade_suggestions,
        limitations=context.limitations,
    )


async def _load_context(
    user_id: str,
    tier: Tier,
    question: str,
    account_store: AccountStore,
    aggregator: DataSourceAggregator,
    enhancer: QueryEnhancer,
    force_refresh: bool,
) -> Optional[AggregatedContext]:
    flags = ContextFlags(force_refresh=force_refresh, max_search_results=settings.SEARCH_MAX_RESULTS)
    if aggregator.registry.is_allowed(tier, "web-search") and enhancer.needs_search(question):
        flags.search_query = enhancer.enhance(question)
        logger.info(f"Search query for {user_id}: {flags.search_query!r}")

    try:
        accounts = await account_store.get_accounts(user_id)
        transactions = await account_store.get_transactions(
            user_id, limit=settings.MAX_TRANSACTIONS_IN_CONTEXT
        )
    except Exception:
        logger.exception(f"Failed to load account data for {user_id}, continuing with market data only")
        accounts, transactions = [], []

    try:
        return await aggregator.build_context(tier, accounts, transactions, flags)
    except Exception:
        logger.exception(f"Failed to build context for {user_id}, answering without data")
        return None
