"""Assistant Pydantic schemas for request/response validation."""
from pydantic import BaseModel, Field
from typing import List, Optional

from asklinc.data.schemas import OmittedSource, SourceAttribution, Tier


class ConversationTurn(BaseModel):
    """One earlier question/answer pair, oldest first in a history list."""
    question: str = Field(..., description="What the user asked")
    answer: str = Field(..., description="What the assistant answered")


class AskRequest(BaseModel):
    """Request to ask the assistant a question."""
    user_id: str = Field(..., description="Authenticated caller; scopes the account data")
    question: str = Field(..., min_length=1, max_length=2000, description="The user's question")
    tier: str = Field("starter", description="Subscription tier: starter, standard or premium")
    conversation_history: List[ConversationTurn] = Field(
        default_factory=list,
        description="Previous turns in this conversation, oldest first"
    )
    force_refresh: bool = Field(False, description="Bypass cached market data")


class AskResponse(BaseModel):
    """Answer with attributions for the data behind it."""
    answer: str = Field(..., description="De-tokenized answer text")
    source_attributions: List[SourceAttribution] = Field(default_factory=list)
    omitted_sources: List[OmittedSource] = Field(default_factory=list)
    upgrade_suggestions: List[str] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list, description="What the caller's tier cannot see")


class TierSourcesResponse(BaseModel):
    """What a tier can and cannot use."""
    tier: Tier
    next_tier: Optional[Tier] = None
    available_sources: List[str] = Field(default_factory=list)
    unavailable_sources: List[OmittedSource] = Field(default_factory=list)
    upgrade_suggestions: List[str] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list)


class CacheRefreshResponse(BaseModel):
    invalidated: int
