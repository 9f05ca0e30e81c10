"""
PortfolioRecord model - stored state of a portfolio aggregate.
"""

from typing import Optional
from datetime import datetime
from decimal import Decimal
from sqlmodel import SQLModel, Field


class PortfolioRecord(SQLModel, table=True):
    """
    Represents a portfolio row.
    client_id carries no uniqueness constraint: how many portfolios a client
    may hold is decided by the caller, not by storage.
    """
    __tablename__ = "portfolio"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, index=True)
    description: Optional[str] = Field(default=None, max_length=500)
    client_id: int = Field(foreign_key="client.id", index=True)
    total_value: Decimal = Field(default=Decimal("0"), max_digits=31, decimal_places=12)
    active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
