"""
Request models for MoneyMap services.
Check presence, length and numeric range only; business rules live in core.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.enums import AssetType

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# Asset fields an update may change but never unset
NOT_CLEARABLE = frozenset({"name", "quantity", "purchase_price", "portfolio_id"})


class _Request(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra='forbid')


class AssetCreate(_Request):
    """Payload for creating an asset of any variant."""
    name: str = Field(min_length=1, max_length=100)
    symbol: Optional[str] = Field(default=None, max_length=50)
    asset_type: AssetType
    quantity: Decimal = Field(gt=0, max_digits=19, decimal_places=8)
    purchase_price: Decimal = Field(gt=0, max_digits=19, decimal_places=4)
    current_price: Optional[Decimal] = Field(default=None, gt=0, max_digits=19, decimal_places=4)
    purchase_date: Optional[date] = None
    portfolio_id: int
    notes: Optional[str] = Field(default=None, max_length=500)

    # Stock
    exchange: Optional[str] = Field(default=None, max_length=20)
    sector: Optional[str] = Field(default=None, max_length=50)
    dividend_yield: Optional[Decimal] = None
    fractional_allowed: Optional[bool] = None

    # Crypto
    blockchain_network: Optional[str] = Field(default=None, max_length=50)
    wallet_address: Optional[str] = Field(default=None, max_length=200)
    staking_enabled: Optional[bool] = None
    staking_apy: Optional[Decimal] = None

    # Gold
    gold_form: Optional[str] = Field(default=None, max_length=50)
    purity: Optional[str] = Field(default=None, max_length=20)
    weight_unit: Optional[str] = Field(default=None, max_length=20)
    storage_location: Optional[str] = Field(default=None, max_length=100)
    is_physical: Optional[bool] = None

    # Mutual fund
    fund_category: Optional[str] = Field(default=None, max_length=50)
    amc_name: Optional[str] = Field(default=None, max_length=100)
    plan_type: Optional[str] = Field(default=None, max_length=20)
    expense_ratio: Optional[Decimal] = None
    nav_date: Optional[date] = None
    risk_level: Optional[str] = Field(default=None, max_length=20)
    min_investment: Optional[Decimal] = None

    def attributes(self) -> Dict[str, Any]:
        """Flat attributes for core.create_asset (variant tag excluded)."""
        return self.model_dump(exclude={"asset_type"})


class AssetUpdate(_Request):
    """Partial asset edit. Only fields explicitly set are applied."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    symbol: Optional[str] = Field(default=None, max_length=50)
    quantity: Optional[Decimal] = Field(default=None, gt=0, max_digits=19, decimal_places=8)
    purchase_price: Optional[Decimal] = Field(default=None, gt=0, max_digits=19, decimal_places=4)
    current_price: Optional[Decimal] = Field(default=None, gt=0, max_digits=19, decimal_places=4)
    purchase_date: Optional[date] = None
    portfolio_id: Optional[int] = None
    notes: Optional[str] = Field(default=None, max_length=500)

    exchange: Optional[str] = Field(default=None, max_length=20)
    sector: Optional[str] = Field(default=None, max_length=50)
    dividend_yield: Optional[Decimal] = None
    fractional_allowed: Optional[bool] = None
    blockchain_network: Optional[str] = Field(default=None, max_length=50)
    wallet_address: Optional[str] = Field(default=None, max_length=200)
    staking_enabled: Optional[bool] = None
    staking_apy: Optional[Decimal] = None
    gold_form: Optional[str] = Field(default=None, max_length=50)
    purity: Optional[str] = Field(default=None, max_length=20)
    weight_unit: Optional[str] = Field(default=None, max_length=20)
    storage_location: Optional[str] = Field(default=None, max_length=100)
    is_physical: Optional[bool] = None
    fund_category: Optional[str] = Field(default=None, max_length=50)
    amc_name: Optional[str] = Field(default=None, max_length=100)
    plan_type: Optional[str] = Field(default=None, max_length=20)
    expense_ratio: Optional[Decimal] = None
    nav_date: Optional[date] = None
    risk_level: Optional[str] = Field(default=None, max_length=20)
    min_investment: Optional[Decimal] = None

    def changes(self) -> Dict[str, Any]:
        """Explicitly set fields; None is dropped for fields that cannot be cleared."""
        return {
            k: v for k, v in self.model_dump(exclude_unset=True).items()
            if v is not None or k not in NOT_CLEARABLE
        }


class PortfolioCreate(_Request):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    client_id: int


class PortfolioUpdate(_Request):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    client_id: Optional[int] = None


class ClientCreate(_Request):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=150, pattern=EMAIL_PATTERN)
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = Field(default=None, max_length=500)


class ClientUpdate(_Request):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=150, pattern=EMAIL_PATTERN)
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = Field(default=None, max_length=500)
