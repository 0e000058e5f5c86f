"""Anonymizer - renders account data as tokenized text for the prompt.

Every account, institution and merchant name goes through the request's
tokenizer; balances, amounts, categories and city-level locations are kept
because they carry no identifying value on their own.
"""
from typing import List, Optional

from asklinc.accounts.schemas import AccountRecord, TransactionRecord
from asklinc.privacy.tokenizer import IdentifierTokenizer, TokenKind


def _money(value: Optional[float]) -> str:
    return f"${value:,.2f}"


def anonymize_accounts(accounts: List[AccountRecord], tokenizer: IdentifierTokenizer) -> str:
    """One line per account: ``- Account_1 (depository/checking): $4,250.12 at Institution_1``."""
    lines = []
    for account in accounts:
        account_token = tokenizer.tokenize(TokenKind.ACCOUNT, account.name, account.institution)
        institution_info = ""
        if account.institution:
            institution_info = f" at {tokenizer.tokenize(TokenKind.INSTITUTION, account.institution)}"

        balance = _money(account.balance) if account.balance is not None else "N/A"
        available = ""
        if account.available_balance is not None:
            available = f" (Available: {_money(account.available_balance)})"

        account_type = account.type + (f"/{account.subtype}" if account.subtype else "")
        lines.append(f"- {account_token} ({account_type}): {balance}{available}{institution_info}")
    return "\n".join(lines)


def anonymize_transactions(
    transactions: List[TransactionRecord],
    tokenizer: IdentifierTokenizer,
) -> str:
    """One line per transaction with the description and merchant tokenized."""
    lines = []
    for txn in transactions:
        date_str = txn.date.isoformat() if txn.date else "Unknown"
        name_token = tokenizer.tokenize(TokenKind.MERCHANT, txn.name or "Unknown Transaction")

        merchant = ""
        if txn.merchant_name and txn.merchant_name != txn.name:
            merchant = f" ({tokenizer.tokenize(TokenKind.MERCHANT, txn.merchant_name)})"

        categories = [c for c in txn.category if c and c.strip() and c != "0"]
        category = f" [{', '.join(categories)}]" if categories else ""
        pending = " [PENDING]" if txn.pending else ""
        payment = f" via {txn.payment_method}" if txn.payment_method else ""
        location = f" at {txn.city}" if txn.city else ""

        lines.append(
            f"- [{date_str}] {name_token}{merchant}: {_money(txn.amount)}"
            f"{category}{pending}{payment}{location}"
        )
    return "\n".join(lines)
