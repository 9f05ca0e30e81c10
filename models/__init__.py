"""
Database models for MoneyMap.
All SQLModel table definitions are centralized here.
"""

from models.client import ClientRecord
from models.portfolio import PortfolioRecord
from models.asset import AssetRecord
from models.transaction import TransactionRecord

__all__ = [
    'ClientRecord',
    'PortfolioRecord',
    'AssetRecord',
    'TransactionRecord',
]
