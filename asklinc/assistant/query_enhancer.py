"""Query Enhancer - rule-based rewrite of a question into a search query.

No retrieval index is involved: the question is scanned for known
institution names and rate-topic terms and rewritten so that a keyword
search API returns current, dated results.
"""
import re
from datetime import date
from typing import List, Optional, Sequence

RECENCY_WORDS = ["current", "today", "latest", "right now", "this week", "this month", "news"]


class QueryEnhancer:
    """
    Stateless question -> search query rewriter.

    - institution + rate topic: "<institution> current rates today <year> <last words>"
    - rate topic only: "<question> <year>"
    - otherwise the question is returned unchanged

    When several institutions are mentioned only the first one (by position
    in the question) is used.
    """

    def __init__(
        self,
        institutions: Sequence[str],
        rate_terms: Sequence[str],
        tail_words: int = 3,
    ):
        self.institutions = [i.lower() for i in institutions if i and i.strip()]
        self.rate_terms = [t.lower() for t in rate_terms if t and t.strip()]
        self.tail_words = tail_words
        self._institution_patterns = [
            (name, re.compile(r"(?<!\w)" + re.escape(name) + r"(?!\w)", re.IGNORECASE))
            for name in self.institutions
        ]
        self._term_patterns = [
            (term, re.compile(r"(?<!\w)" + re.escape(term) + r"s?(?!\w)", re.IGNORECASE))
            for term in self.rate_terms
        ]

    def find_institution(self, question: str) -> Optional[str]:
        """Return the configured institution mentioned earliest in ``question``."""
        best = None
        best_pos = None
        for name, pattern in self._institution_patterns:
            match = pattern.search(question)
            if match and (best_pos is None or match.start() < best_pos):
                best, best_pos = name, match.start()
        return best

    def find_rate_terms(self, question: str) -> List[str]:
        return [term for term, pattern in self._term_patterns if pattern.search(question)]

    def enhance(self, question: str, year: Optional[int] = None) -> str:
        """Rewrite ``question`` into a search query."""
        if not question or not question.strip():
            return question

        year = year or date.today().year
        question = question.strip()
        rate_terms = self.find_rate_terms(question)
        if not rate_terms:
            return question

        institution = self.find_institution(question)
        if institution:
            tail = " ".join(question.split()[-self.tail_words:])
            return f"{institution} current rates today {year} {tail}"

        return f"{question} {year}"

    def needs_search(self, question: str) -> bool:
        """Whether the question asks about something time-sensitive enough to search for."""
        if not question:
            return False
        lowered = question.lower()
        return bool(
            self.find_rate_terms(question)
            or self.find_institution(question)
            or any(word in lowered for word in RECENCY_WORDS)
        )
