"""
Read-only projections of assets and portfolios for response shaping.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from core import Asset, Portfolio, Transaction
from core.valuation import ZERO, profit_loss, profit_loss_percentage


def _plain(value: Any) -> Any:
    """Convert Decimals, dates and enums to JSON-friendly values."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


@dataclass
class TransactionView:
    id: Optional[int]
    asset_id: Optional[int]
    transaction_type: str
    quantity: Decimal
    price: Decimal
    total_amount: Decimal
    transaction_date: date
    notes: Optional[str] = None

    @classmethod
    def from_transaction(cls, tx: Transaction) -> "TransactionView":
        return cls(
            id=tx.id,
            asset_id=tx.asset_id,
            transaction_type=tx.transaction_type.value,
            quantity=tx.quantity,
            price=tx.price,
            total_amount=tx.total_amount,
            transaction_date=tx.transaction_date,
            notes=tx.notes,
        )


@dataclass
class AssetView:
    """Asset with every computed field a response needs."""
    id: Optional[int]
    name: str
    symbol: Optional[str]
    asset_type: str
    asset_type_display_name: str
    type_description: str
    portfolio_id: Optional[int]
    quantity: Optional[Decimal]
    purchase_price: Optional[Decimal]
    current_price: Optional[Decimal]
    current_value: Optional[Decimal]
    cost_basis: Optional[Decimal]
    profit_loss: Decimal
    profit_loss_percentage: Decimal
    allowed_transaction_types: List[str]
    minimum_quantity_increment: Decimal
    purchase_date: Optional[date] = None
    notes: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    transactions: Optional[List[TransactionView]] = None

    @classmethod
    def from_asset(cls, asset: Asset, include_transactions: bool = False) -> "AssetView":
        return cls(
            id=asset.id,
            name=asset.name,
            symbol=asset.symbol,
            asset_type=asset.asset_type.value,
            asset_type_display_name=asset.asset_type.display_name,
            type_description=asset.type_description(),
            portfolio_id=asset.portfolio_id,
            quantity=asset.quantity,
            purchase_price=asset.purchase_price,
            current_price=asset.current_price,
            current_value=asset.current_value,
            cost_basis=asset.cost_basis,
            profit_loss=asset.profit_loss,
            profit_loss_percentage=asset.profit_loss_percentage,
            allowed_transaction_types=sorted(k.value for k in asset.allowed_transaction_kinds()),
            minimum_quantity_increment=asset.minimum_quantity_increment(),
            purchase_date=asset.purchase_date,
            notes=asset.notes,
            details=asdict(asset.details),
            transactions=(
                [TransactionView.from_transaction(tx) for tx in asset.transactions]
                if include_transactions else None
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _plain(asdict(self))


@dataclass
class PortfolioSummary:
    """Lightweight portfolio figures, including a per-type value breakdown."""
    id: Optional[int]
    name: str
    client_id: Optional[int]
    active: bool
    total_value: Decimal
    asset_count: int
    total_cost: Decimal
    total_profit_loss: Decimal
    total_profit_loss_percentage: Decimal
    value_by_type: Dict[str, Decimal] = field(default_factory=dict)

    @classmethod
    def from_portfolio(cls, portfolio: Portfolio) -> "PortfolioSummary":
        total_cost = sum(
            (a.cost_basis for a in portfolio.assets if a.cost_basis is not None),
            ZERO,
        )
        total_pnl = profit_loss(portfolio.total_value, total_cost, 1)
        return cls(
            id=portfolio.id,
            name=portfolio.name,
            client_id=portfolio.client_id,
            active=portfolio.active,
            total_value=portfolio.total_value,
            asset_count=portfolio.asset_count,
            total_cost=total_cost,
            total_profit_loss=total_pnl,
            total_profit_loss_percentage=profit_loss_percentage(total_pnl, total_cost, 1),
            value_by_type={t.value: v for t, v in portfolio.value_by_type().items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        return _plain(asdict(self))


@dataclass
class PortfolioView:
    """Portfolio with its assets."""
    id: Optional[int]
    name: str
    description: Optional[str]
    client_id: Optional[int]
    active: bool
    total_value: Decimal
    asset_count: int
    assets: List[AssetView] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_portfolio(cls, portfolio: Portfolio) -> "PortfolioView":
        return cls(
            id=portfolio.id,
            name=portfolio.name,
            description=portfolio.description,
            client_id=portfolio.client_id,
            active=portfolio.active,
            total_value=portfolio.total_value,
            asset_count=portfolio.asset_count,
            assets=[AssetView.from_asset(a) for a in portfolio.assets],
            created_at=portfolio.created_at,
            updated_at=portfolio.updated_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return _plain(asdict(self))
