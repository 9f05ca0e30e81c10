"""
Asset aggregate: identity, common attributes, one variant payload and the
transactions the asset owns.

Variant behaviour is dispatched through ``core.variant_rules`` on the
``asset_type`` tag. Every mutator of quantity or price recalculates the
current value immediately.
"""

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from core import valuation, variant_rules
from core.details import (
    AssetDetails,
    DETAILS_BY_TYPE,
    all_detail_field_names,
    default_details,
    detail_field_names,
)
from core.enums import AssetType, PlanType, TransactionType
from core.errors import InconsistentStateError, ValidationError
from core.transaction import Transaction

logger = logging.getLogger(__name__)

COMMON_FIELDS = frozenset({
    "name",
    "symbol",
    "quantity",
    "purchase_price",
    "current_price",
    "purchase_date",
    "notes",
    "portfolio_id",
})

DECIMAL_DETAIL_FIELDS = frozenset({"dividend_yield", "staking_apy", "expense_ratio", "min_investment"})


def _decimal(value, field_name: str) -> Optional[Decimal]:
    try:
        return valuation.to_decimal(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be a number, got {value!r}", field=field_name)


def _price(value, field_name: str) -> Optional[Decimal]:
    return valuation.quantize_price(_decimal(value, field_name))


def _normalize_detail_value(name: str, value: Any) -> Any:
    if name in DECIMAL_DETAIL_FIELDS:
        return _decimal(value, name)
    if name == "plan_type" and value is not None:
        return str(getattr(value, "value", value)).strip().upper()
    return value


class Asset:
    """
    A holding of a single instrument inside a portfolio.

    The owning portfolio is referenced by id only; ownership of the asset
    lives in the portfolio's collection.
    """

    def __init__(
        self,
        name: str,
        asset_type,
        quantity,
        purchase_price,
        current_price=None,
        symbol: Optional[str] = None,
        purchase_date: Optional[date] = None,
        notes: Optional[str] = None,
        details: Optional[AssetDetails] = None,
        portfolio_id: Optional[int] = None,
        asset_id: Optional[int] = None,
        transactions: Optional[List[Transaction]] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self._id = asset_id
        self._asset_type = variant_rules.resolve_asset_type(asset_type)
        if details is None:
            details = default_details(self._asset_type)
        elif not isinstance(details, DETAILS_BY_TYPE[self._asset_type]):
            raise ValidationError(
                f"{type(details).__name__} does not describe a {self._asset_type.value} asset",
                field="details",
            )
        self._details = details
        self.name = name
        self.symbol = symbol
        self.purchase_date = purchase_date
        self.notes = notes
        self.portfolio_id = portfolio_id
        self.created_at = created_at
        self.updated_at = updated_at
        self._transactions: List[Transaction] = list(transactions or [])
        self._quantity = _decimal(quantity, "quantity")
        self._purchase_price = _price(purchase_price, "purchase_price")
        self._current_price = _price(current_price, "current_price")
        self._current_value: Optional[Decimal] = None
        if self._quantity is not None and (self._purchase_price is not None or self._current_price is not None):
            self.recalculate_current_value()

    def __repr__(self) -> str:
        return (
            f"Asset(id={self._id!r}, name={self.name!r}, type={self._asset_type.value}, "
            f"quantity={self._quantity}, current_value={self._current_value})"
        )

    # ============== Identity and tag ==============

    @property
    def id(self) -> Optional[int]:
        return self._id

    def assign_id(self, asset_id: int) -> None:
        """Record the id given by persistence. An id is assigned once."""
        if self._id is not None and self._id != asset_id:
            raise InconsistentStateError(f"Asset {self._id} cannot be re-identified as {asset_id}")
        self._id = asset_id
        for tx in self._transactions:
            tx.asset_id = asset_id

    @property
    def asset_type(self) -> AssetType:
        return self._asset_type

    @property
    def details(self) -> AssetDetails:
        return self._details

    def update_details(self, **changes) -> None:
        """
        Edit fields of the variant payload.

        Raises:
            ValidationError: if a field does not belong to this asset's variant
        """
        self._details = self._edited_details(changes)

    def _edited_details(self, changes: Mapping[str, Any]) -> AssetDetails:
        allowed = detail_field_names(self._asset_type)
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(
                f"Fields not applicable to {self._asset_type.value}: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        normalized = {k: _normalize_detail_value(k, v) for k, v in changes.items()}
        return replace(self._details, **normalized)

    # ============== Quantity and prices ==============

    @property
    def quantity(self) -> Optional[Decimal]:
        return self._quantity

    @quantity.setter
    def quantity(self, value) -> None:
        self._quantity = _decimal(value, "quantity")
        self.recalculate_current_value()

    @property
    def purchase_price(self) -> Optional[Decimal]:
        return self._purchase_price

    @purchase_price.setter
    def purchase_price(self, value) -> None:
        self._purchase_price = _price(value, "purchase_price")
        self.recalculate_current_value()

    @property
    def current_price(self) -> Optional[Decimal]:
        return self._current_price

    @current_price.setter
    def current_price(self, value) -> None:
        self._current_price = _price(value, "current_price")
        self.recalculate_current_value()

    def update(self, **changes) -> None:
        """
        Apply several attribute edits, then recalculate once.
        Accepts common fields and fields of this asset's variant payload.

        Every value is parsed before anything is assigned, so a failing edit
        leaves the asset as it was.

        Raises:
            ValidationError: unknown field or unparseable value
            InconsistentStateError: the edit would leave the asset without a value
        """
        if "portfolio_id" in changes:
            raise ValidationError("Move assets between portfolios through the portfolios", field="portfolio_id")
        detail_changes = {k: v for k, v in changes.items() if k not in COMMON_FIELDS}
        details = self._edited_details(detail_changes) if detail_changes else self._details
        quantity = _decimal(changes["quantity"], "quantity") if "quantity" in changes else self._quantity
        purchase_price = (
            _price(changes["purchase_price"], "purchase_price") if "purchase_price" in changes
            else self._purchase_price
        )
        current_price = (
            _price(changes["current_price"], "current_price") if "current_price" in changes
            else self._current_price
        )
        value = valuation.compute_current_value(quantity, purchase_price, current_price)
        if value is None:
            missing = "quantity" if quantity is None else "price"
            raise InconsistentStateError(
                f"Cannot value asset {self._id if self._id is not None else self.name!r}: no {missing}"
            )

        self._details = details
        for key in ("name", "symbol", "purchase_date", "notes"):
            if key in changes:
                setattr(self, key, changes[key])
        self._quantity = quantity
        self._purchase_price = purchase_price
        self._current_price = current_price
        self._current_value = value

    # ============== Valuation ==============

    def recalculate_current_value(self) -> Decimal:
        """
        Recompute current value from quantity and the best known price.

        Raises:
            InconsistentStateError: if quantity (or every price) is unset
        """
        value = valuation.compute_current_value(self._quantity, self._purchase_price, self._current_price)
        if value is None:
            self._current_value = None
            missing = "quantity" if self._quantity is None else "price"
            raise InconsistentStateError(
                f"Cannot value asset {self._id if self._id is not None else self.name!r}: no {missing}"
            )
        self._current_value = value
        return value

    @property
    def current_value(self) -> Optional[Decimal]:
        return self._current_value

    @property
    def cost_basis(self) -> Optional[Decimal]:
        return valuation.cost_basis(self._purchase_price, self._quantity)

    @property
    def profit_loss(self) -> Decimal:
        return valuation.profit_loss(self._current_value, self._purchase_price, self._quantity)

    @property
    def profit_loss_percentage(self) -> Decimal:
        return valuation.profit_loss_percentage(self.profit_loss, self._purchase_price, self._quantity)

    # ============== Variant rules ==============

    def allowed_transaction_kinds(self) -> FrozenSet[TransactionType]:
        return variant_rules.allowed_transaction_kinds(self._asset_type, self._details)

    def is_transaction_kind_allowed(self, kind) -> bool:
        try:
            kind = TransactionType(getattr(kind, "value", kind))
        except ValueError:
            return False
        return kind in self.allowed_transaction_kinds()

    def is_quantity_valid(self, quantity) -> bool:
        return variant_rules.is_quantity_valid(self._asset_type, self._details, quantity)

    def minimum_quantity_increment(self) -> Decimal:
        return variant_rules.minimum_increment(self._asset_type, self._details)

    def type_description(self) -> str:
        return variant_rules.type_description(self._asset_type)

    def validate(self) -> None:
        """
        Check business rules on the current attributes.

        Raises:
            ValidationError: on the first rule that fails
        """
        if not self.name or not str(self.name).strip():
            raise ValidationError("Asset name is required", field="name")
        if self._quantity is None:
            raise ValidationError("Quantity is required", field="quantity")
        if not self.is_quantity_valid(self._quantity):
            raise ValidationError(
                f"Invalid quantity {self._quantity} for {self._asset_type.display_name} "
                f"(minimum increment {self.minimum_quantity_increment()})",
                field="quantity",
            )
        if self._purchase_price is None:
            raise ValidationError("Purchase price is required", field="purchase_price")
        if self._purchase_price <= valuation.ZERO:
            raise ValidationError("Purchase price must be greater than 0", field="purchase_price")
        if self._current_price is not None and self._current_price <= valuation.ZERO:
            raise ValidationError("Current price must be greater than 0", field="current_price")
        if self._asset_type == AssetType.MUTUAL_FUND:
            plan_type = self._details.plan_type
            if plan_type not in {p.value for p in PlanType}:
                raise ValidationError(f"Unknown plan type: {plan_type!r}", field="plan_type")

    # ============== Transactions ==============

    @property
    def transactions(self) -> List[Transaction]:
        return list(self._transactions)

    def add_transaction(self, transaction: Transaction) -> Transaction:
        """
        Append a transaction and link it to this asset.
        The caller must check is_transaction_kind_allowed first.
        """
        self._transactions.append(transaction)
        transaction.asset_id = self._id
        return transaction


def create_asset(variant, attributes: Mapping[str, Any]) -> Asset:
    """
    Build and validate an asset from a variant tag and flat attributes.

    Args:
        variant: AssetType or its name
        attributes: common fields plus fields of the variant payload;
            None values fall back to the payload defaults

    Returns:
        A validated, unsaved Asset

    Raises:
        ValidationError: unknown variant, unknown or foreign attribute,
            or a business rule failure
    """
    asset_type = variant_rules.resolve_asset_type(variant)
    attrs: Dict[str, Any] = dict(attributes)

    declared = attrs.pop("asset_type", None)
    if declared is not None and variant_rules.resolve_asset_type(declared) != asset_type:
        raise ValidationError(f"Asset type mismatch: {declared!r} vs {asset_type.value}", field="asset_type")

    detail_names = all_detail_field_names()
    unknown = set(attrs) - COMMON_FIELDS - detail_names
    if unknown:
        raise ValidationError(f"Unknown asset attributes: {', '.join(sorted(unknown))}", field=sorted(unknown)[0])

    own = detail_field_names(asset_type)
    foreign = {k for k in (set(attrs) & detail_names) - own if attrs[k] is not None}
    if foreign:
        raise ValidationError(
            f"Fields not applicable to {asset_type.value}: {', '.join(sorted(foreign))}",
            field=sorted(foreign)[0],
        )

    details = DETAILS_BY_TYPE[asset_type](**{
        k: _normalize_detail_value(k, attrs[k]) for k in own if attrs.get(k) is not None
    })

    quantity = attrs.get("quantity")
    if quantity is None:
        raise ValidationError("Quantity is required", field="quantity")
    if attrs.get("purchase_price") is None:
        raise ValidationError("Purchase price is required", field="purchase_price")

    asset = Asset(
        name=attrs.get("name"),
        asset_type=asset_type,
        quantity=quantity,
        purchase_price=attrs.get("purchase_price"),
        current_price=attrs.get("current_price"),
        symbol=attrs.get("symbol"),
        purchase_date=attrs.get("purchase_date"),
        notes=attrs.get("notes"),
        details=details,
        portfolio_id=attrs.get("portfolio_id"),
    )
    asset.validate()
    logger.debug(f"Built {asset_type.value} asset {asset.name!r}")
    return asset
