"""
Enumerations shared by the asset rule engine.
"""

from enum import Enum


class AssetType(str, Enum):
    """Variant tag of an asset. Selects its valuation and transaction rules."""

    GOLD = "GOLD"
    STOCK = "STOCK"
    MUTUAL_FUND = "MUTUAL_FUND"
    CRYPTO = "CRYPTO"

    @property
    def display_name(self) -> str:
        return _ASSET_TYPE_LABELS[self][0]

    @property
    def description(self) -> str:
        return _ASSET_TYPE_LABELS[self][1]


_ASSET_TYPE_LABELS = {
    AssetType.GOLD: ("Gold", "Physical gold or gold-related investments"),
    AssetType.STOCK: ("Stock", "Equity shares in publicly traded companies"),
    AssetType.MUTUAL_FUND: ("Mutual Fund", "Professionally managed investment funds"),
    AssetType.CRYPTO: ("Cryptocurrency", "Digital or virtual currencies"),
}


class TransactionType(str, Enum):
    """Kind of a recorded transaction."""

    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"
    STAKING_REWARD = "STAKING_REWARD"


class PlanType(str, Enum):
    """Mutual fund plan: returns reinvested (GROWTH) or paid out (DIVIDEND)."""

    GROWTH = "GROWTH"
    DIVIDEND = "DIVIDEND"
