"""
Asset valuation and business-rule engine for MoneyMap.
Pure, in-memory code: no I/O, no persistence, no threads.
"""

from core.enums import AssetType, TransactionType, PlanType
from core.errors import (
    MoneyMapError,
    ValidationError,
    InvalidTransactionError,
    NotFoundError,
    InconsistentStateError,
)
from core.details import StockDetails, CryptoDetails, GoldDetails, MutualFundDetails
from core.transaction import Transaction
from core.asset import Asset, create_asset
from core.portfolio import Portfolio

__all__ = [
    # Enums
    'AssetType',
    'TransactionType',
    'PlanType',
    # Errors
    'MoneyMapError',
    'ValidationError',
    'InvalidTransactionError',
    'NotFoundError',
    'InconsistentStateError',
    # Variant payloads
    'StockDetails',
    'CryptoDetails',
    'GoldDetails',
    'MutualFundDetails',
    # Aggregates
    'Transaction',
    'Asset',
    'create_asset',
    'Portfolio',
]
