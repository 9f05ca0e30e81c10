"""
Services package for MoneyMap.
Provides business operations on top of the core rule engine and repositories.
"""

from services.asset_service import AssetService
from services.portfolio_service import PortfolioService
from services.client_service import ClientService
from services.projections import (
    AssetView,
    PortfolioSummary,
    PortfolioView,
    TransactionView,
)
from services.locks import aggregate_lock

__all__ = [
    # Services
    'AssetService',
    'PortfolioService',
    'ClientService',
    # Projections
    'AssetView',
    'PortfolioSummary',
    'PortfolioView',
    'TransactionView',
    # Concurrency
    'aggregate_lock',
]
