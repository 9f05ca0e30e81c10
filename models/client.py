"""
ClientRecord model - a client of the asset management firm.
"""

from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field


class ClientRecord(SQLModel, table=True):
    """Represents a client who holds portfolios."""
    __tablename__ = "client"

    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    email: str = Field(max_length=150, index=True, unique=True)
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = Field(default=None, max_length=500)
    active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
