"""Tests for tokenized account and transaction rendering."""
from datetime import date

from asklinc.accounts.schemas import AccountRecord, TransactionRecord
from asklinc.privacy.anonymizer import anonymize_accounts, anonymize_transactions


class TestAnonymizeAccounts:

    def test_account_line(self, tokenizer, sample_accounts):
        text = anonymize_accounts(sample_accounts[:1], tokenizer)
        assert text == (
            "- Account_1 (depository/checking): $4,250.12 (Available: $4,100.00) at Institution_1"
        )

    def test_no_real_names(self, tokenizer, sample_accounts):
        text = anonymize_accounts(sample_accounts, tokenizer)
        for account in sample_accounts:
            assert account.name not in text
            assert account.institution not in text

    def test_missing_balance(self, tokenizer):
        text = anonymize_accounts([AccountRecord(name="Wallet")], tokenizer)
        assert text == "- Account_1 (depository): N/A"


class TestAnonymizeTransactions:

    def test_transaction_line(self, tokenizer, sample_transactions):
        text = anonymize_transactions(sample_transactions[:1], tokenizer)
        assert text == (
            "- [2024-06-03] Merchant_1 (Merchant_2): $86.42 [Food and Drink, Groceries] at Austin"
        )
        assert tokenizer.reverse("Merchant_2") == "Whole Foods"

    def test_pending_and_payment_method(self, tokenizer):
        txn = TransactionRecord(date=date(2024, 5, 20), name="RENT PAYMENT", amount=1850.0,
                                pending=True, payment_method="ach")
        text = anonymize_transactions([txn], tokenizer)
        assert text == "- [2024-05-20] Merchant_1: $1,850.00 [PENDING] via ach"

    def test_missing_date(self, tokenizer):
        text = anonymize_transactions([TransactionRecord(amount=5.0)], tokenizer)
        assert text.startswith("- [Unknown] Merchant_1: $5.00")

    def test_same_merchant_reuses_token(self, tokenizer):
        txns = [
            TransactionRecord(date=date(2024, 6, 1), name="NETFLIX.COM", amount=15.49),
            TransactionRecord(date=date(2024, 5, 1), name="NETFLIX.COM", amount=15.49),
        ]
        text = anonymize_transactions(txns, tokenizer)
        assert text.count("Merchant_1") == 2
        assert "NETFLIX" not in text
