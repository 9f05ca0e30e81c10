"""
Per-variant business rules: allowed transaction kinds, quantity validity and
minimum quantity increment.

Rules are looked up by AssetType in ``RULES``. Every variant starts from the
default rule (quantity > 0, increment 1e-8) and may only narrow it.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, FrozenSet, Optional

from core.details import (
    AssetDetails,
    CryptoDetails,
    DETAILS_BY_TYPE,
    GoldDetails,
    MutualFundDetails,
    StockDetails,
    default_details,
)
from core.enums import AssetType, TransactionType
from core.errors import ValidationError
from core.valuation import Number, ZERO, decimal_places, is_whole, to_decimal

DEFAULT_INCREMENT = Decimal("0.00000001")
STOCK_FRACTIONAL_INCREMENT = Decimal("0.01")
WHOLE_UNIT_INCREMENT = Decimal("1")
MUTUAL_FUND_INCREMENT = Decimal("0.0001")
MUTUAL_FUND_MAX_PLACES = 4

# Physical gold held in these units is counted, not weighed
COUNTABLE_GOLD_UNITS = frozenset({"PIECE", "COIN", "BAR"})

BASE_TRANSACTION_KINDS: FrozenSet[TransactionType] = frozenset({
    TransactionType.BUY,
    TransactionType.SELL,
    TransactionType.TRANSFER_IN,
    TransactionType.TRANSFER_OUT,
})


@dataclass(frozen=True)
class VariantRule:
    """Rule set of one variant. ``quantity_check`` runs after the default check."""
    description: str
    transaction_kinds: Callable[[AssetDetails], FrozenSet[TransactionType]]
    minimum_increment: Callable[[AssetDetails], Decimal]
    quantity_check: Optional[Callable[[AssetDetails, Decimal], bool]] = None


def _base_kinds(details: AssetDetails) -> FrozenSet[TransactionType]:
    return BASE_TRANSACTION_KINDS


def _default_increment(details: AssetDetails) -> Decimal:
    return DEFAULT_INCREMENT


# ==================== STOCK ====================

def _stock_kinds(details: StockDetails) -> FrozenSet[TransactionType]:
    return BASE_TRANSACTION_KINDS | {TransactionType.DIVIDEND}


def _stock_quantity(details: StockDetails, quantity: Decimal) -> bool:
    if details.fractional_allowed is False:
        return is_whole(quantity)
    return True


def _stock_increment(details: StockDetails) -> Decimal:
    if details.fractional_allowed is False:
        return WHOLE_UNIT_INCREMENT
    return STOCK_FRACTIONAL_INCREMENT


# ==================== CRYPTO ====================

def _crypto_kinds(details: CryptoDetails) -> FrozenSet[TransactionType]:
    if details.staking_enabled:
        return BASE_TRANSACTION_KINDS | {TransactionType.STAKING_REWARD}
    return BASE_TRANSACTION_KINDS


# ==================== GOLD ====================

def _is_countable_gold(details: GoldDetails) -> bool:
    unit = (details.weight_unit or "").strip().upper()
    return bool(details.is_physical) and unit in COUNTABLE_GOLD_UNITS


def _gold_quantity(details: GoldDetails, quantity: Decimal) -> bool:
    if _is_countable_gold(details):
        return is_whole(quantity)
    return True


def _gold_increment(details: GoldDetails) -> Decimal:
    if _is_countable_gold(details):
        return WHOLE_UNIT_INCREMENT
    return DEFAULT_INCREMENT


# ==================== MUTUAL FUND ====================

def _fund_kinds(details: MutualFundDetails) -> FrozenSet[TransactionType]:
    if details.is_dividend_plan:
        return BASE_TRANSACTION_KINDS | {TransactionType.DIVIDEND}
    return BASE_TRANSACTION_KINDS


def _fund_quantity(details: MutualFundDetails, quantity: Decimal) -> bool:
    return decimal_places(quantity) <= MUTUAL_FUND_MAX_PLACES


def _fund_increment(details: MutualFundDetails) -> Decimal:
    return MUTUAL_FUND_INCREMENT


RULES: Dict[AssetType, VariantRule] = {
    AssetType.STOCK: VariantRule(
        description=(
            "Equity shares in publicly traded companies. "
            "Can receive dividends and are traded on stock exchanges."
        ),
        transaction_kinds=_stock_kinds,
        minimum_increment=_stock_increment,
        quantity_check=_stock_quantity,
    ),
    AssetType.CRYPTO: VariantRule(
        description=(
            "Digital or virtual currency secured by cryptography. "
            "Can be held in wallets and optionally staked for rewards."
        ),
        transaction_kinds=_crypto_kinds,
        minimum_increment=_default_increment,
    ),
    AssetType.GOLD: VariantRule(
        description=(
            "Physical gold or gold-backed investments. "
            "Held as coins, bars, jewellery, ETFs or sovereign gold bonds."
        ),
        transaction_kinds=_base_kinds,
        minimum_increment=_gold_increment,
        quantity_check=_gold_quantity,
    ),
    AssetType.MUTUAL_FUND: VariantRule(
        description=(
            "Professionally managed investment pool. "
            "Invests in stocks, bonds, or other assets based on fund objective."
        ),
        transaction_kinds=_fund_kinds,
        minimum_increment=_fund_increment,
        quantity_check=_fund_quantity,
    ),
}


def resolve_asset_type(variant) -> AssetType:
    """
    Parse a variant tag from an AssetType or its (case-insensitive) name.

    Raises:
        ValidationError: if the tag is unknown
    """
    if isinstance(variant, AssetType):
        return variant
    try:
        return AssetType(str(variant).strip().upper())
    except ValueError:
        raise ValidationError(f"Unknown asset type: {variant!r}", field="asset_type")


def _resolve(variant, details: Optional[AssetDetails]):
    asset_type = resolve_asset_type(variant)
    if details is None:
        return asset_type, default_details(asset_type)
    if not isinstance(details, DETAILS_BY_TYPE[asset_type]):
        raise ValidationError(
            f"{type(details).__name__} does not describe a {asset_type.value} asset",
            field="details",
        )
    return asset_type, details


def allowed_transaction_kinds(variant, details: Optional[AssetDetails] = None) -> FrozenSet[TransactionType]:
    """Transaction kinds a variant accepts given its payload."""
    asset_type, details = _resolve(variant, details)
    return RULES[asset_type].transaction_kinds(details)


def is_quantity_valid(variant, details: Optional[AssetDetails], quantity: Optional[Number]) -> bool:
    """
    Check a quantity against the default rule, then the variant's own rule.
    Unparseable or missing quantities are invalid.
    """
    asset_type, details = _resolve(variant, details)
    try:
        quantity = to_decimal(quantity)
    except ValueError:
        return False
    if quantity is None or quantity <= ZERO:
        return False
    check = RULES[asset_type].quantity_check
    return check is None or check(details, quantity)


def minimum_increment(variant, details: Optional[AssetDetails] = None) -> Decimal:
    """Smallest quantity step a variant supports."""
    asset_type, details = _resolve(variant, details)
    return RULES[asset_type].minimum_increment(details)


def type_description(variant) -> str:
    return RULES[resolve_asset_type(variant)].description
