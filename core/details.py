"""
Variant payloads carried by an asset next to its AssetType tag.
Only the payload matching the tag is meaningful for a given asset.
"""

from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal
from typing import Dict, Optional, Type, Union

from core.enums import AssetType, PlanType


@dataclass
class StockDetails:
    """Equity attributes."""
    exchange: Optional[str] = None  # e.g., NYSE, NASDAQ, NSE
    sector: Optional[str] = None
    dividend_yield: Optional[Decimal] = None
    fractional_allowed: bool = True


@dataclass
class CryptoDetails:
    """Digital currency attributes."""
    blockchain_network: Optional[str] = None  # e.g., Bitcoin, Ethereum, Solana
    wallet_address: Optional[str] = None
    staking_enabled: bool = False
    staking_apy: Optional[Decimal] = None


@dataclass
class GoldDetails:
    """Gold holding attributes."""
    gold_form: Optional[str] = None  # e.g., COIN, BAR, ETF, SOVEREIGN_BOND
    purity: Optional[str] = None  # e.g., 24K, 999.9
    weight_unit: Optional[str] = None  # e.g., GRAM, TROY_OUNCE, PIECE
    storage_location: Optional[str] = None
    is_physical: bool = True


@dataclass
class MutualFundDetails:
    """Mutual fund attributes."""
    fund_category: Optional[str] = None  # e.g., Large Cap, Index Fund, Debt Fund
    amc_name: Optional[str] = None
    plan_type: str = PlanType.GROWTH.value
    expense_ratio: Optional[Decimal] = None
    nav_date: Optional[date] = None
    risk_level: Optional[str] = None
    min_investment: Optional[Decimal] = None

    @property
    def is_dividend_plan(self) -> bool:
        plan_type = getattr(self.plan_type, "value", self.plan_type) or ""
        return plan_type.upper() == PlanType.DIVIDEND.value


AssetDetails = Union[StockDetails, CryptoDetails, GoldDetails, MutualFundDetails]

DETAILS_BY_TYPE: Dict[AssetType, Type] = {
    AssetType.STOCK: StockDetails,
    AssetType.CRYPTO: CryptoDetails,
    AssetType.GOLD: GoldDetails,
    AssetType.MUTUAL_FUND: MutualFundDetails,
}


def detail_field_names(asset_type: AssetType) -> set:
    """Names of the payload fields for a variant."""
    return {f.name for f in fields(DETAILS_BY_TYPE[asset_type])}


def all_detail_field_names() -> set:
    """Names of every payload field across all variants."""
    names = set()
    for asset_type in DETAILS_BY_TYPE:
        names |= detail_field_names(asset_type)
    return names


def default_details(asset_type: AssetType) -> AssetDetails:
    return DETAILS_BY_TYPE[asset_type]()
