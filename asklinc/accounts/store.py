"""Account store - the boundary to linked bank data.

Account linking and bank-data retrieval live outside this service. The
assistant only consumes the ``AccountStore`` interface, which must return
records scoped strictly to the requesting user.
"""
import logging
from abc import ABC, abstractmethod
from datetime import date, timedelta
from typing import Dict, List, Optional

from asklinc.accounts.schemas import AccountRecord, TransactionRecord

logger = logging.getLogger(__name__)


class AccountStore(ABC):
    """Abstract source of a user's accounts and transactions."""

    @abstractmethod
    async def get_accounts(self, user_id: str) -> List[AccountRecord]:
        """Return the user's linked accounts."""
        pass

    @abstractmethod
    async def get_transactions(self, user_id: str, limit: int = 200) -> List[TransactionRecord]:
        """Return the user's most recent transactions, newest first."""
        pass


class InMemoryAccountStore(AccountStore):
    """
    Account store backed by per-user dictionaries.

    Used for demo mode and tests; production deployments plug in a store
    that reads from the bank-data integration.
    """

    def __init__(
        self,
        accounts: Optional[Dict[str, List[AccountRecord]]] = None,
        transactions: Optional[Dict[str, List[TransactionRecord]]] = None,
    ):
        self._accounts = accounts or {}
        self._transactions = transactions or {}

    async def get_accounts(self, user_id: str) -> List[AccountRecord]:
        return list(self._accounts.get(user_id, []))

    async def get_transactions(self, user_id: str, limit: int = 200) -> List[TransactionRecord]:
        rows = sorted(
            self._transactions.get(user_id, []),
            key=lambda t: t.date or date.min,
            reverse=True,
        )
        return rows[:limit]

    def load_user(
        self,
        user_id: str,
        accounts: List[AccountRecord],
        transactions: List[TransactionRecord],
    ) -> None:
        """Replace a user's records."""
        self._accounts[user_id] = list(accounts)
        self._transactions[user_id] = list(transactions)


DEMO_USER_ID = "demo"


def build_demo_store() -> InMemoryAccountStore:
    """Seed a store with the demo user's accounts and a month of activity."""
    today = date.today()
    accounts = [
        AccountRecord(name="Total Checking", institution="Chase", type="depository",
                      subtype="checking", balance=4250.12, available_balance=4100.00),
        AccountRecord(name="Online Savings", institution="Ally Bank", type="depository",
                      subtype="savings", balance=18500.00, available_balance=18500.00),
        AccountRecord(name="Sapphire Preferred", institution="Chase", type="credit",
                      subtype="credit card", balance=1325.40),
        AccountRecord(name="Rollover IRA", institution="Fidelity", type="investment",
                      subtype="ira", balance=64210.77),
    ]
    transactions = [
        TransactionRecord(date=today - timedelta(days=1), name="WHOLEFDS MKT 10234",
                          merchant_name="Whole Foods", amount=86.42,
                          category=["Food and Drink", "Groceries"], payment_method="in store",
                          city="Austin"),
        TransactionRecord(date=today - timedelta(days=3), name="NETFLIX.COM",
                          merchant_name="Netflix", amount=15.49,
                          category=["Service", "Subscription"], payment_method="online"),
        TransactionRecord(date=today - timedelta(days=5), name="SHELL OIL 5738",
                          merchant_name="Shell", amount=48.10,
                          category=["Travel", "Gas Stations"], payment_method="in store",
                          city="Austin"),
        TransactionRecord(date=today - timedelta(days=14), name="ACME CORP PAYROLL",
                          amount=-3200.00, category=["Transfer", "Payroll"]),
        TransactionRecord(date=today - timedelta(days=15), name="CHASE CREDIT CRD AUTOPAY",
                          amount=540.00, category=["Payment", "Credit Card"]),
        TransactionRecord(date=today - timedelta(days=20), name="RENT PAYMENT",
                          amount=1850.00, category=["Payment", "Rent"], pending=True),
    ]
    store = InMemoryAccountStore()
    store.load_user(DEMO_USER_ID, accounts, transactions)
    return store
