"""
AssetRecord model - single table holding every asset variant.
asset_type is the discriminator; only the columns of that variant are used.
"""

from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from sqlmodel import SQLModel, Field


class AssetRecord(SQLModel, table=True):
    """Represents an asset row of any variant."""
    __tablename__ = "asset"

    id: Optional[int] = Field(default=None, primary_key=True)
    portfolio_id: Optional[int] = Field(default=None, foreign_key="portfolio.id", index=True)
    asset_type: str = Field(index=True)  # "STOCK", "CRYPTO", "GOLD", "MUTUAL_FUND"
    name: str = Field(max_length=100, index=True)
    symbol: Optional[str] = Field(default=None, max_length=50, index=True)  # e.g., AAPL, BTC, GLD

    quantity: Optional[Decimal] = Field(default=None, max_digits=19, decimal_places=8)
    purchase_price: Decimal = Field(max_digits=19, decimal_places=4)
    current_price: Optional[Decimal] = Field(default=None, max_digits=19, decimal_places=4)
    current_value: Optional[Decimal] = Field(default=None, max_digits=31, decimal_places=12)  # exact quantity x price
    purchase_date: Optional[date] = Field(default=None)
    notes: Optional[str] = Field(default=None, max_length=500)

    # Stock
    exchange: Optional[str] = Field(default=None, max_length=20)
    sector: Optional[str] = Field(default=None, max_length=50)
    dividend_yield: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=4)
    fractional_allowed: Optional[bool] = Field(default=None)

    # Crypto
    blockchain_network: Optional[str] = Field(default=None, max_length=50)
    wallet_address: Optional[str] = Field(default=None, max_length=200)
    staking_enabled: Optional[bool] = Field(default=None)
    staking_apy: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=4)

    # Gold
    gold_form: Optional[str] = Field(default=None, max_length=50)
    purity: Optional[str] = Field(default=None, max_length=20)
    weight_unit: Optional[str] = Field(default=None, max_length=20)
    storage_location: Optional[str] = Field(default=None, max_length=100)
    is_physical: Optional[bool] = Field(default=None)

    # Mutual fund
    fund_category: Optional[str] = Field(default=None, max_length=50)
    amc_name: Optional[str] = Field(default=None, max_length=100)
    plan_type: Optional[str] = Field(default=None, max_length=20)  # "GROWTH" or "DIVIDEND"
    expense_ratio: Optional[Decimal] = Field(default=None, max_digits=6, decimal_places=4)
    nav_date: Optional[date] = Field(default=None)
    risk_level: Optional[str] = Field(default=None, max_length=20)
    min_investment: Optional[Decimal] = Field(default=None, max_digits=19, decimal_places=4)

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
