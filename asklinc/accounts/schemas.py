"""Account and transaction records supplied by the account store."""
from pydantic import BaseModel, Field
from typing import List, Optional
import datetime


class AccountRecord(BaseModel):
    """A linked account as returned by the account store."""
    name: str = Field(..., description="Account display name")
    institution: Optional[str] = Field(None, description="Institution holding the account")
    type: str = Field("depository", description="Account type")
    subtype: Optional[str] = Field(None, description="Account subtype (checking, savings, ...)")
    balance: Optional[float] = Field(None, description="Current balance")
    available_balance: Optional[float] = Field(None, description="Available balance")


class TransactionRecord(BaseModel):
    """A single transaction on a linked account."""
    date: Optional[datetime.date] = Field(None, description="Posting date")
    name: str = Field("Unknown Transaction", description="Transaction description")
    merchant_name: Optional[str] = Field(None, description="Merchant name when enriched")
    amount: float = Field(0.0, description="Signed amount")
    category: List[str] = Field(default_factory=list, description="Category path")
    pending: bool = Field(False, description="Whether the transaction is still pending")
    payment_method: Optional[str] = Field(None, description="Payment channel")
    city: Optional[str] = Field(None, description="City-level location only")
