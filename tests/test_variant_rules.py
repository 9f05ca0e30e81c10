"""
Variant rule tests

Allowed transaction kinds, quantity checks and minimum increments per asset type
"""

from decimal import Decimal

import pytest

from core import (
    AssetType,
    CryptoDetails,
    GoldDetails,
    MutualFundDetails,
    StockDetails,
    TransactionType,
    ValidationError,
)
from core.variant_rules import (
    BASE_TRANSACTION_KINDS,
    allowed_transaction_kinds,
    is_quantity_valid,
    minimum_increment,
    resolve_asset_type,
    type_description,
)


class TestAllowedTransactionKinds:

    def test_stock_accepts_dividends(self):
        kinds = allowed_transaction_kinds(AssetType.STOCK)
        assert kinds == BASE_TRANSACTION_KINDS | {TransactionType.DIVIDEND}

    def test_gold_has_base_kinds_only(self):
        assert allowed_transaction_kinds(AssetType.GOLD) == BASE_TRANSACTION_KINDS

    def test_crypto_staking_reward_requires_staking(self):
        assert TransactionType.STAKING_REWARD not in allowed_transaction_kinds(AssetType.CRYPTO)
        staking = CryptoDetails(staking_enabled=True)
        assert TransactionType.STAKING_REWARD in allowed_transaction_kinds(AssetType.CRYPTO, staking)

    def test_mutual_fund_dividend_only_on_dividend_plan(self):
        growth = MutualFundDetails(plan_type="GROWTH")
        dividend = MutualFundDetails(plan_type="dividend")
        assert TransactionType.DIVIDEND not in allowed_transaction_kinds(AssetType.MUTUAL_FUND, growth)
        assert TransactionType.DIVIDEND in allowed_transaction_kinds(AssetType.MUTUAL_FUND, dividend)

    def test_mismatched_payload_is_rejected(self):
        with pytest.raises(ValidationError):
            allowed_transaction_kinds(AssetType.STOCK, GoldDetails())


class TestQuantityRules:

    @pytest.mark.parametrize("asset_type", list(AssetType))
    @pytest.mark.parametrize("quantity", [Decimal("0"), Decimal("-1"), None, "abc"])
    def test_default_rule_rejects_non_positive(self, asset_type, quantity):
        assert not is_quantity_valid(asset_type, None, quantity)

    def test_whole_shares_when_fractional_disallowed(self):
        details = StockDetails(fractional_allowed=False)
        assert not is_quantity_valid(AssetType.STOCK, details, Decimal("1.5"))
        assert is_quantity_valid(AssetType.STOCK, details, Decimal("2"))

    def test_fractional_shares_when_allowed(self):
        assert is_quantity_valid(AssetType.STOCK, StockDetails(), Decimal("1.5"))

    def test_mutual_fund_units_have_four_places(self):
        assert is_quantity_valid(AssetType.MUTUAL_FUND, None, Decimal("10.1234"))
        assert not is_quantity_valid(AssetType.MUTUAL_FUND, None, Decimal("10.12345"))
        assert is_quantity_valid(AssetType.MUTUAL_FUND, None, Decimal("10.12340000"))

    def test_countable_gold_must_be_whole(self):
        coins = GoldDetails(weight_unit="coin", is_physical=True)
        assert not is_quantity_valid(AssetType.GOLD, coins, Decimal("2.5"))
        assert is_quantity_valid(AssetType.GOLD, coins, Decimal("3"))

    def test_weighed_gold_may_be_fractional(self):
        grams = GoldDetails(weight_unit="GRAM")
        assert is_quantity_valid(AssetType.GOLD, grams, Decimal("12.345"))

    def test_crypto_accepts_small_amounts(self):
        assert is_quantity_valid(AssetType.CRYPTO, None, Decimal("0.00000001"))


class TestMinimumIncrement:

    def test_increments(self):
        assert minimum_increment(AssetType.STOCK) == Decimal("0.01")
        assert minimum_increment(AssetType.STOCK, StockDetails(fractional_allowed=False)) == Decimal("1")
        assert minimum_increment(AssetType.MUTUAL_FUND) == Decimal("0.0001")
        assert minimum_increment(AssetType.CRYPTO) == Decimal("0.00000001")
        assert minimum_increment(AssetType.GOLD, GoldDetails(weight_unit="BAR")) == Decimal("1")
        assert minimum_increment(AssetType.GOLD, GoldDetails(weight_unit="GRAM")) == Decimal("0.00000001")


class TestResolveAssetType:

    def test_parses_names_case_insensitively(self):
        assert resolve_asset_type("mutual_fund") is AssetType.MUTUAL_FUND
        assert resolve_asset_type(AssetType.GOLD) is AssetType.GOLD

    def test_unknown_tag(self):
        with pytest.raises(ValidationError) as exc_info:
            resolve_asset_type("BOND")
        assert exc_info.value.field == "asset_type"

    def test_type_description(self):
        assert "dividends" in type_description(AssetType.STOCK)
