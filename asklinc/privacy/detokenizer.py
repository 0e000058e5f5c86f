"""Response De-tokenizer - restores real names in the model's answer."""
from typing import Any

from asklinc.privacy.tokenizer import IdentifierTokenizer, TOKEN_PATTERN


def convert_to_user_friendly(raw_answer: Any, tokenizer: IdentifierTokenizer) -> str:
    """
    Replace every token in ``raw_answer`` with the real value it stands for.

    Tokens the session does not know are left verbatim. The scan is a single
    pass, so ``Account_1`` never clobbers the prefix of ``Account_10``.
    """
    if not isinstance(raw_answer, str):
        return str(raw_answer)

    return TOKEN_PATTERN.sub(lambda match: tokenizer.reverse(match.group(0)), raw_answer)
