"""Responder - sends the assembled prompt to the language model.

The model only ever sees tokenized text. Transient failures are retried
once with backoff; after the last attempt a ModelFailure is raised so the
route can answer with a generic error instead of a partial response.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI
from tenacity import AsyncRetrying, RetryError, stop_after_attempt, wait_exponential

from asklinc.config import settings

logger = logging.getLogger(__name__)


class ModelFailure(Exception):
    """The model did not produce an answer after all retries."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class ModelProvider(ABC):
    """Anything that can turn chat messages into answer text."""

    @abstractmethod
    async def complete(self, messages: List[Dict[str, Any]]) -> str:
        ...


class OpenAIModelProvider(ModelProvider):
    """Chat completions through the OpenAI API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model or settings.OPENAI_MODEL
        self.max_tokens = max_tokens or settings.OPENAI_MAX_TOKENS
        self._client = client or AsyncOpenAI(api_key=api_key or settings.OPENAI_API_KEY)

    async def complete(self, messages: List[Dict[str, Any]]) -> str:
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=self.max_tokens,
        )
        content = response.choices[0].message.content
        if not content:
            raise ValueError("Model returned an empty answer")
        return content


async def generate_answer(
    model: ModelProvider,
    messages: List[Dict[str, Any]],
    max_attempts: Optional[int] = None,
    backoff_seconds: Optional[float] = None,
) -> str:
    """
    Call the model, retrying transient failures.

    Raises:
        ModelFailure: when every attempt failed
    """
    max_attempts = max_attempts or settings.MODEL_MAX_ATTEMPTS
    backoff = settings.MODEL_RETRY_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=backoff, min=backoff, max=backoff * 8),
        before_sleep=lambda state: logger.warning(
            f"Model call failed (attempt {state.attempt_number}/{max_attempts}), retrying: "
            f"{state.outcome.exception()}"
        ),
    )
    try:
        async for attempt in retrying:
            with attempt:
                return await model.complete(messages)
    except RetryError as e:
        cause = e.last_attempt.exception()
        logger.error(f"Model call failed after {max_attempts} attempts: {cause}")
        raise ModelFailure(str(cause), attempts=max_attempts) from cause
