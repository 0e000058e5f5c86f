"""Prompt Builder - turns the aggregated context into model input.

Builds the complete prompt for the model from:
- A fixed system role and data-handling rules
- Tokenized account and transaction summaries
- Market context (economic indicators, live market data, search snippets)
- A bounded slice of the conversation history

Every piece of free text passes through the request's tokenizer, so the
prompt never carries a real account, institution or merchant name.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from asklinc.assistant.schemas import ConversationTurn
from asklinc.data.schemas import AggregatedContext
from asklinc.privacy.anonymizer import anonymize_accounts, anonymize_transactions
from asklinc.privacy.tokenizer import IdentifierTokenizer


SYSTEM_ROLE = """You are a financial assistant that answers questions about the user's own finances.

## DATA HANDLING
- Accounts, institutions and merchants are referred to by placeholders such as Account_1, Institution_2 or Merchant_3.
- Always refer to them using the exact placeholder text; never guess or invent real names.
- Only use the figures provided below. If something is not in the data, say you don't have it.

## ANSWERING
- Be concise and cite specific numbers from the data.
- If the user asks to "show all transactions" or "list all transactions", give a numbered list of individual transactions rather than a summary.
- You are not a licensed advisor; frame recommendations as general guidance.
"""

ECONOMIC_NOTES = """## INTERPRETING ECONOMIC DATA
- The CPI value is the raw Consumer Price Index (1982-84 = 100), not a percentage.
- An inflation rate needs a year-over-year comparison; say so if asked for one.
"""

NO_DATA_NOTE = (
    "Note: the user's financial data sources were unavailable for this question. "
    "Answer from general knowledge and say that account-specific details could not be loaded."
)


@dataclass
class PromptPayload:
    """The assembled model input for one question."""
    system_prompt: str
    history: List[Dict[str, str]] = field(default_factory=list)
    question: str = ""

    def to_messages(self) -> List[Dict[str, Any]]:
        messages = [{"role": "system", "content": self.system_prompt}]
        messages.extend(self.history)
        messages.append({"role": "user", "content": self.question})
        return messages


def build_prompt(
    context: Optional[AggregatedContext],
    tokenizer: IdentifierTokenizer,
    question: str,
    conversation_history: List[ConversationTurn],
    max_history_turns: int = 10,
    max_transactions: int = 200,
) -> PromptPayload:
    """
    Build the prompt for the model.

    ``context`` may be None when aggregation failed outright; the question
    is then forwarded with a note that data sources were unavailable.
    """
    # Tokenize structured data first so scrub() knows every real name
    parts = [SYSTEM_ROLE]
    if context is not None and context.has_any_data():
        parts.append(_format_context(context, tokenizer, max_transactions))
    else:
        parts.append(NO_DATA_NOTE)

    history = []
    for turn in bound_history(conversation_history, max_history_turns):
        history.append({"role": "user", "content": tokenizer.scrub(turn.question)})
        history.append({"role": "assistant", "content": tokenizer.scrub(turn.answer)})

    return PromptPayload(
        system_prompt="\n".join(parts),
        history=history,
        question=tokenizer.scrub(question),
    )


def bound_history(
    conversation_history: List[ConversationTurn],
    max_turns: int,
) -> List[ConversationTurn]:
    """Keep only the ``max_turns`` most recent turns."""
    if max_turns <= 0:
        return []
    return list(conversation_history)[-max_turns:]


def _format_context(
    context: AggregatedContext,
    tokenizer: IdentifierTokenizer,
    max_transactions: int,
) -> str:
    lines = [f"## USER DATA (tier: {context.tier.value})", ""]

    if context.accounts:
        lines.append("### Accounts")
        lines.append(anonymize_accounts(context.accounts, tokenizer))
        lines.append("")

    if context.transactions:
        lines.append("### Recent transactions")
        lines.append(anonymize_transactions(context.transactions[:max_transactions], tokenizer))
        lines.append("")

    indicators = context.economic_indicators
    if indicators is not None:
        lines.append("### Current economic indicators")
        labelled = [
            ("CPI Index", indicators.cpi, ""),
            ("Fed Funds Rate", indicators.fed_rate, "%"),
            ("Average 30-year Mortgage Rate", indicators.mortgage_rate, "%"),
            ("Average Credit Card APR", indicators.credit_card_apr, "%"),
            ("Unemployment Rate", indicators.unemployment, "%"),
        ]
        for label, point, unit in labelled:
            if point is not None:
                lines.append(f"- {label}: {point.value}{unit} ({point.date}, {point.source})")
        lines.append("")
        lines.append(ECONOMIC_NOTES)

    live = context.live_market_data
    if live is not None:
        lines.append("### Live market data")
        if live.treasury_yields:
            yields = ", ".join(f"{y.term}: {y.yield_pct}%" for y in live.treasury_yields)
            lines.append(f"- Treasury yields: {yields}")
        for quote in live.stock_quotes:
            change = f" ({quote.change_percent:+.2f}%)" if quote.change_percent is not None else ""
            lines.append(f"- {quote.symbol}: ${quote.price:,.2f}{change} as of {quote.date}")
        lines.append("")

    if context.search_results:
        lines.append("### Web search results")
        for result in context.search_results:
            lines.append(f"- {tokenizer.scrub(result.title)} ({result.source}): {tokenizer.scrub(result.snippet)}")
        lines.append("")

    unavailable = [o.name for o in context.omitted_sources if o.reason == "unavailable"]
    if unavailable:
        lines.append(f"Note: these data sources are temporarily unavailable: {', '.join(unavailable)}.")
    if context.limitations and context.tier.value != "premium":
        lines.append(f"Data limitations at this tier: {'; '.join(context.limitations)}.")
    if context.tier.value != "premium" and context.upgrade_suggestions:
        lines.append("If the question needs data this tier lacks, mention briefly what an upgrade would add.")

    return "\n".join(lines)
