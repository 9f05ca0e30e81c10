"""
Transaction record - an entry in an asset's history.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from core.enums import TransactionType


@dataclass
class Transaction:
    """A recorded movement on an asset. Kind validity is checked by the caller."""
    transaction_type: TransactionType
    quantity: Decimal
    price: Decimal
    transaction_date: date = field(default_factory=date.today)
    notes: Optional[str] = None
    asset_id: Optional[int] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def total_amount(self) -> Decimal:
        return self.quantity * self.price
