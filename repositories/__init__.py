"""
Repositories package for MoneyMap.
Provides data access layer for all database operations.
"""

from repositories.asset_repository import AssetRepository
from repositories.transaction_repository import TransactionRepository
from repositories.portfolio_repository import PortfolioRepository
from repositories.client_repository import ClientRepository

__all__ = [
    'AssetRepository',
    'TransactionRepository',
    'PortfolioRepository',
    'ClientRepository',
]
