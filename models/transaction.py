"""
TransactionRecord model - a recorded transaction on an asset.
"""

from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from sqlmodel import SQLModel, Field


class TransactionRecord(SQLModel, table=True):
    """Represents a transaction row."""
    __tablename__ = "asset_transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    asset_id: int = Field(foreign_key="asset.id", index=True)
    transaction_type: str  # "BUY", "SELL", "DIVIDEND", "TRANSFER_IN", "TRANSFER_OUT", "STAKING_REWARD"
    transaction_date: date = Field(index=True)
    quantity: Decimal = Field(max_digits=19, decimal_places=8)
    price: Decimal = Field(max_digits=19, decimal_places=4)  # Price per unit at transaction time
    notes: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=datetime.now)
