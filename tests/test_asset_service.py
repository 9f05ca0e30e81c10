"""
AssetService tests

Creation, repricing, edits, moves and transactions against an in-memory database
"""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError as RequestValidationError
from sqlmodel import Session

from core import (
    AssetType,
    InvalidTransactionError,
    NotFoundError,
    TransactionType,
    ValidationError,
)
from models import AssetRecord, PortfolioRecord
from schemas import AssetCreate, AssetUpdate, PortfolioCreate
from services import AssetService, AssetView, PortfolioService
from services import asset_service


class TestCreateAsset:

    def test_creates_and_values(self, make_asset, portfolio):
        asset = make_asset()

        assert asset.id is not None
        assert asset.portfolio_id == portfolio.id
        assert asset.current_value == Decimal("15000")
        assert PortfolioService.get_portfolio(portfolio.id).total_value == Decimal("15000")

    def test_unknown_portfolio(self):
        request = AssetCreate(name="Gold coin", asset_type="GOLD", quantity=1,
                              purchase_price=Decimal("1900"), portfolio_id=999)
        with pytest.raises(NotFoundError):
            AssetService.create_asset(request)

    def test_rule_violation_leaves_nothing_stored(self, make_asset, portfolio):
        with pytest.raises(ValidationError):
            make_asset(fractional_allowed=False, quantity=Decimal("1.5"))
        assert AssetService.get_assets_by_portfolio(portfolio.id) == []

    def test_request_rejects_non_positive_quantity(self, portfolio):
        with pytest.raises(RequestValidationError):
            AssetCreate(name="x", asset_type="STOCK", quantity=0,
                        purchase_price=Decimal("1"), portfolio_id=portfolio.id)

    def test_variant_fields_round_trip_through_storage(self, make_asset):
        created = make_asset(
            name="Bitcoin",
            symbol="BTC",
            asset_type="CRYPTO",
            quantity=Decimal("0.5"),
            purchase_price=Decimal("30000"),
            blockchain_network="Bitcoin",
            staking_enabled=True,
        )
        loaded = AssetService.get_asset(created.id)

        assert loaded.asset_type is AssetType.CRYPTO
        assert loaded.details.blockchain_network == "Bitcoin"
        assert loaded.details.staking_enabled is True
        assert loaded.current_value == Decimal("15000")


class TestUpdatePrice:

    def test_end_to_end(self, make_asset, portfolio):
        asset = make_asset()

        updated = AssetService.update_asset_price(asset.id, Decimal("175.50"))

        assert updated.current_value == Decimal("17550.00")
        assert updated.profit_loss == Decimal("2550.00")
        assert updated.profit_loss_percentage == Decimal("17.0000")
        assert PortfolioService.get_portfolio(portfolio.id).total_value == Decimal("17550.00")

        view = AssetService.get_asset_view(asset.id)
        assert view.current_price == Decimal("175.50")
        assert view.profit_loss_percentage == Decimal("17.0000")

    @pytest.mark.parametrize("price", [None, 0, -5, "abc"])
    def test_rejects_bad_price(self, make_asset, price):
        asset = make_asset()
        with pytest.raises(ValidationError):
            AssetService.update_asset_price(asset.id, price)

    def test_unknown_asset(self):
        with pytest.raises(NotFoundError):
            AssetService.update_asset_price(12345, Decimal("1"))


class TestUpdateAsset:

    def test_edit_fields(self, make_asset, portfolio):
        asset = make_asset()

        updated = AssetService.update_asset(asset.id, AssetUpdate(quantity=Decimal("10"), sector="Technology"))

        assert updated.current_value == Decimal("1500")
        assert AssetService.get_asset(asset.id).details.sector == "Technology"
        assert PortfolioService.get_portfolio(portfolio.id).total_value == Decimal("1500")

    def test_edit_breaking_rule_is_rejected(self, make_asset):
        asset = make_asset(fractional_allowed=False)
        with pytest.raises(ValidationError):
            AssetService.update_asset(asset.id, AssetUpdate(quantity=Decimal("2.5")))
        assert AssetService.get_asset(asset.id).quantity == Decimal("100")

    def test_move_between_portfolios(self, make_asset, portfolio, client):
        other = PortfolioService.create_portfolio(PortfolioCreate(name="Satellite", client_id=client.id))
        asset = make_asset()
        make_asset(name="Gold bar", symbol=None, asset_type="GOLD", quantity=1,
                   purchase_price=Decimal("2000"))

        AssetService.update_asset(asset.id, AssetUpdate(portfolio_id=other.id))

        assert PortfolioService.get_portfolio(portfolio.id).total_value == Decimal("2000")
        moved_to = PortfolioService.get_portfolio(other.id)
        assert moved_to.total_value == Decimal("15000")
        assert [a.id for a in moved_to.assets] == [asset.id]

    def test_price_update_follows_asset_moved_while_locking(
        self, engine, monkeypatch, make_asset, portfolio, client
    ):
        other = PortfolioService.create_portfolio(PortfolioCreate(name="Satellite", client_id=client.id))
        asset = make_asset()
        real_lock = asset_service.aggregate_lock
        calls = []

        def moving_lock(kind, *ids):
            if not calls:
                with Session(engine) as session:
                    record = session.get(AssetRecord, asset.id)
                    record.portfolio_id = other.id
                    session.add(record)
                    session.commit()
            calls.append(ids)
            return real_lock(kind, *ids)

        monkeypatch.setattr(asset_service, "aggregate_lock", moving_lock)

        AssetService.update_asset_price(asset.id, Decimal("200"))

        assert calls == [(portfolio.id,), (other.id,)]
        with Session(engine) as session:
            assert session.get(PortfolioRecord, other.id).total_value == Decimal("20000")
        assert PortfolioService.get_portfolio(portfolio.id).total_value == Decimal("0")


class TestDeleteAsset:

    def test_delete_refreshes_total(self, make_asset, portfolio):
        asset = make_asset()
        kept = make_asset(name="Other", quantity=Decimal("1"))
        AssetService.record_transaction(asset.id, TransactionType.BUY, Decimal("100"), Decimal("150"))

        AssetService.delete_asset(asset.id)

        assert PortfolioService.get_portfolio(portfolio.id).total_value == kept.current_value
        with pytest.raises(NotFoundError):
            AssetService.get_asset(asset.id)

    def test_unknown_asset(self):
        with pytest.raises(NotFoundError):
            AssetService.delete_asset(404)


class TestTransactions:

    def test_record_and_list(self, make_asset):
        asset = make_asset()
        AssetService.record_transaction(asset.id, "SELL", Decimal("5"), Decimal("160"),
                                        transaction_date=date(2024, 3, 1))
        AssetService.record_transaction(asset.id, TransactionType.BUY, Decimal("100"), Decimal("150"),
                                        transaction_date=date(2024, 1, 1), notes="initial")

        transactions = AssetService.get_transactions(asset.id)

        assert [t.transaction_type for t in transactions] == [TransactionType.BUY, TransactionType.SELL]
        assert transactions[0].notes == "initial"
        assert transactions[1].total_amount == Decimal("800")
        # recording never changes the position
        assert AssetService.get_asset(asset.id).quantity == Decimal("100")

    def test_dividend_on_stock(self, make_asset):
        asset = make_asset()
        tx = AssetService.record_transaction(asset.id, TransactionType.DIVIDEND, Decimal("100"), Decimal("0.24"))
        assert tx.id is not None
        assert tx.asset_id == asset.id

    def test_staking_reward_on_stock_is_rejected(self, make_asset):
        asset = make_asset()
        with pytest.raises(InvalidTransactionError) as exc_info:
            AssetService.record_transaction(asset.id, TransactionType.STAKING_REWARD, Decimal("1"), Decimal("1"))
        assert str(exc_info.value) == "Transaction type STAKING_REWARD is not allowed for STOCK assets"
        assert AssetService.get_transactions(asset.id) == []

    def test_staking_reward_on_staking_crypto(self, make_asset):
        asset = make_asset(name="Ether", symbol="ETH", asset_type="CRYPTO", quantity=Decimal("2"),
                           purchase_price=Decimal("2000"), staking_enabled=True)
        tx = AssetService.record_transaction(asset.id, "STAKING_REWARD", Decimal("0.01"), Decimal("0"))
        assert tx.transaction_type is TransactionType.STAKING_REWARD

    def test_unknown_kind(self, make_asset):
        asset = make_asset()
        with pytest.raises(InvalidTransactionError):
            AssetService.record_transaction(asset.id, "AIRDROP", Decimal("1"), Decimal("1"))

    def test_quantity_follows_variant_rule(self, make_asset):
        asset = make_asset(fractional_allowed=False)
        with pytest.raises(ValidationError):
            AssetService.record_transaction(asset.id, "BUY", Decimal("0.5"), Decimal("1"))

    def test_negative_price(self, make_asset):
        asset = make_asset()
        with pytest.raises(ValidationError):
            AssetService.record_transaction(asset.id, "BUY", Decimal("1"), Decimal("-1"))

    def test_view_includes_transactions(self, make_asset):
        asset = make_asset()
        AssetService.record_transaction(asset.id, "BUY", Decimal("100"), Decimal("150"))

        view = AssetService.get_asset_view(asset.id, with_transactions=True)

        assert isinstance(view, AssetView)
        assert len(view.transactions) == 1
        data = view.to_dict()
        assert data["asset_type"] == "STOCK"
        assert data["transactions"][0]["transaction_type"] == "BUY"
        assert "DIVIDEND" in data["allowed_transaction_types"]


class TestQueries:

    def test_by_type_client_and_search(self, make_asset, client):
        make_asset()
        make_asset(name="Gold coin", symbol="GC", asset_type="GOLD", quantity=2,
                   purchase_price=Decimal("1900"), weight_unit="COIN")

        assert [a.name for a in AssetService.get_assets_by_type(AssetType.GOLD)] == ["Gold coin"]
        assert len(AssetService.get_assets_by_client(client.id)) == 2
        assert [a.symbol for a in AssetService.search_assets("aapl")] == ["AAPL"]
        assert len(AssetService.search_assets("  ")) == 2
        assert AssetService.get_total_value_by_type("GOLD") == Decimal("3800")

    def test_asset_types(self):
        assert set(AssetService.get_asset_types()) == set(AssetType)

    def test_assets_of_unknown_portfolio(self):
        with pytest.raises(NotFoundError):
            AssetService.get_assets_by_portfolio(77)
