"""
Repository tests

Mapping between core aggregates and stored rows
"""

from decimal import Decimal

import pytest
from sqlmodel import Session

from core import AssetType, NotFoundError, Portfolio, Transaction, TransactionType, create_asset
from models import AssetRecord
from repositories import AssetRepository, PortfolioRepository, TransactionRepository


def _gold(**overrides):
    attributes = {
        "name": "Sovereign",
        "quantity": Decimal("3"),
        "purchase_price": Decimal("450"),
        "gold_form": "COIN",
        "weight_unit": "PIECE",
    }
    attributes.update(overrides)
    return create_asset(AssetType.GOLD, attributes)


class TestAssetRepository:

    def test_add_assigns_id_and_writes_value(self, engine, portfolio):
        asset = _gold(portfolio_id=portfolio.id)
        AssetRepository.add(asset)

        with Session(engine) as session:
            record = session.get(AssetRecord, asset.id)
            assert record.asset_type == "GOLD"
            assert record.current_value == Decimal("1350")
            assert record.weight_unit == "PIECE"
            assert record.exchange is None

    def test_save_unknown_asset(self):
        asset = _gold()
        asset.assign_id(500)
        with pytest.raises(NotFoundError):
            AssetRepository.save(asset)

    def test_delete_returns_false_when_missing(self):
        assert AssetRepository.delete(1) is False


class TestPortfolioRepository:

    def test_add_with_held_assets(self, client):
        portfolio = Portfolio(name="Bullion", client_id=client.id, assets=[_gold(), _gold(quantity=Decimal("1"))])

        PortfolioRepository.add(portfolio)

        loaded = PortfolioRepository.get_by_id(portfolio.id)
        assert loaded.asset_count == 2
        assert loaded.total_value == Decimal("1800")
        assert PortfolioRepository.get_stored_total(portfolio.id) == Decimal("1800")

    def test_missing_portfolio(self):
        assert PortfolioRepository.get_by_id(3) is None
        assert PortfolioRepository.get_stored_total(3) is None


class TestTransactionRepository:

    def test_add_get_delete(self, portfolio):
        asset = AssetRepository.add(_gold(portfolio_id=portfolio.id))
        tx = asset.add_transaction(Transaction(TransactionType.BUY, Decimal("3"), Decimal("450")))

        TransactionRepository.add(tx)

        loaded = TransactionRepository.get_by_id(tx.id)
        assert loaded.asset_id == asset.id
        assert loaded.total_amount == Decimal("1350")
        assert TransactionRepository.delete(tx.id) is True
        assert TransactionRepository.get_by_id(tx.id) is None
