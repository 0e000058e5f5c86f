"""Identifier Tokenizer - session-scoped, reversible pseudonymization.

Real account, institution and merchant names are replaced with opaque
tokens such as ``Account_1`` before any text is handed to the AI model.
A tokenizer instance belongs to exactly one request: mappings are kept in
memory only and are discarded when the session ends.
"""
import logging
import re
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)


class TokenKind(str, Enum):
    """Kinds of identifiers that get tokenized."""
    ACCOUNT = "Account"
    INSTITUTION = "Institution"
    MERCHANT = "Merchant"

    @classmethod
    def parse(cls, value: Union["TokenKind", str]) -> "TokenKind":
        """Accept a TokenKind or its case-insensitive name ("account")."""
        if isinstance(value, TokenKind):
            return value
        for kind in cls:
            if str(value).strip().lower() in (kind.value.lower(), kind.name.lower()):
                return kind
        raise ValueError(f"Unknown token kind: {value!r}")


TOKEN_PATTERN = re.compile(
    r"\b(" + "|".join(kind.value for kind in TokenKind) + r")_(\d+)\b"
)


@dataclass(frozen=True)
class TokenMappingEntry:
    """One token <-> real value mapping owned by a tokenizer session."""
    token: str
    real_value: str
    kind: TokenKind
    aux_key: Optional[str] = None


class IdentifierTokenizer:
    """
    Deterministic, reversible tokenizer scoped to a single request.

    - The same (kind, value) pair always yields the same token in a session.
    - Account tokens key off (name, institution) so identical display names
      at different institutions get different tokens.
    - Tokens from another session, or from before ``reset()``, are never
      resolved by ``reverse()``.
    """

    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id or uuid.uuid4().hex
        self._forward: Dict[Tuple[TokenKind, str], str] = {}
        self._reverse: Dict[str, TokenMappingEntry] = {}
        self._counters: Dict[TokenKind, int] = {}
        self.reset()

    def reset(self) -> None:
        """Discard every mapping and restart the per-kind counters."""
        self._forward.clear()
        self._reverse.clear()
        self._counters = {kind: 0 for kind in TokenKind}

    def tokenize(
        self,
        kind: Union[TokenKind, str],
        real_value: Optional[str],
        aux_key: Optional[str] = None,
    ) -> str:
        """Return the session token for ``real_value``, minting one on first use."""
        kind = TokenKind.parse(kind)
        value = self._coerce(real_value, kind)
        aux = self._coerce(aux_key, kind) if aux_key is not None else ""

        if kind == TokenKind.ACCOUNT:
            key = (kind, f"{value}\x1f{aux or 'unknown'}")
        else:
            key = (kind, value)

        token = self._forward.get(key)
        if token is None:
            self._counters[kind] += 1
            token = f"{kind.value}_{self._counters[kind]}"
            self._forward[key] = token
            self._reverse[token] = TokenMappingEntry(
                token=token,
                real_value=value,
                kind=kind,
                aux_key=aux or None,
            )
        return token

    def reverse(self, token: str) -> str:
        """Resolve a token minted by this session; anything else is returned as-is."""
        entry = self.lookup(token) if isinstance(token, str) else None
        if entry is None:
            return token
        return entry.real_value

    def lookup(self, token: str) -> Optional[TokenMappingEntry]:
        return self._reverse.get(token)

    def entries(self) -> List[TokenMappingEntry]:
        """All mappings minted in this session, in creation order."""
        return list(self._reverse.values())

    def scrub(self, text: Optional[str]) -> str:
        """
        Replace every real value known to this session with its token.

        Free text such as the user's question or earlier answers can mention
        an institution or merchant by name; this keeps those names from
        reaching the model. Longer values are replaced first so that
        "Chase Checking" wins over "Chase".
        """
        if not text:
            return "" if text is None else str(text)

        result = str(text)
        seen = set()
        for entry in sorted(self.entries(), key=lambda e: len(e.real_value), reverse=True):
            value = entry.real_value
            if not value.strip() or value.lower() in seen:
                continue
            seen.add(value.lower())
            pattern = re.compile(
                r"(?<!\w)" + re.escape(value) + r"(?!\w)",
                re.IGNORECASE,
            )
            result = pattern.sub(entry.token, result)
        return result

    def __len__(self) -> int:
        return len(self._reverse)

    def _coerce(self, value: Optional[str], kind: TokenKind) -> str:
        if value is None:
            logger.warning(f"Tokenization anomaly: empty {kind.value} value in session {self.session_id}")
            return ""
        if not isinstance(value, str):
            logger.warning(f"Tokenization anomaly: non-string {kind.value} value ({type(value).__name__})")
            return str(value)
        if not value.strip():
            logger.warning(f"Tokenization anomaly: blank {kind.value} value in session {self.session_id}")
        return value


@contextmanager
def tokenization_session(session_id: Optional[str] = None) -> Iterator[IdentifierTokenizer]:
    """Yield a fresh tokenizer for one request and reset it when the request ends."""
    tokenizer = IdentifierTokenizer(session_id)
    try:
        yield tokenizer
    finally:
        tokenizer.reset()
