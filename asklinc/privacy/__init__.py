"""Privacy layer - keeps real identifiers away from the AI model.

- tokenizer: per-request reversible pseudonymization
- anonymizer: tokenized text rendering of accounts and transactions
- detokenizer: restores real names in the model's answer
"""
from asklinc.privacy.tokenizer import (
    IdentifierTokenizer,
    TokenKind,
    TokenMappingEntry,
    tokenization_session,
)
from asklinc.privacy.detokenizer import convert_to_user_friendly

__all__ = [
    "IdentifierTokenizer",
    "TokenKind",
    "TokenMappingEntry",
    "tokenization_session",
    "convert_to_user_friendly",
]
