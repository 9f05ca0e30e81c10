"""
PortfolioService tests

Lifecycle, client totals, recalculation and holdings frames
"""

from decimal import Decimal

import pytest
from sqlmodel import Session

from core import InconsistentStateError, NotFoundError
from models import AssetRecord, PortfolioRecord
from schemas import AssetCreate, PortfolioCreate, PortfolioUpdate
from services import AssetService, PortfolioService, PortfolioSummary
from services.portfolio_service import HOLDINGS_COLUMNS


class TestLifecycle:

    def test_create_requires_client(self):
        with pytest.raises(NotFoundError):
            PortfolioService.create_portfolio(PortfolioCreate(name="Orphan", client_id=42))

    def test_new_portfolio_is_empty_and_active(self, portfolio):
        loaded = PortfolioService.get_portfolio(portfolio.id)
        assert loaded.active
        assert loaded.total_value == Decimal("0")
        assert loaded.asset_count == 0

    def test_update(self, portfolio):
        updated = PortfolioService.update_portfolio(
            portfolio.id, PortfolioUpdate(name="Retirement", description="Long term")
        )
        assert updated.name == "Retirement"
        assert PortfolioService.get_portfolio(portfolio.id).description == "Long term"

    def test_several_portfolios_per_client(self, client, portfolio):
        PortfolioService.create_portfolio(PortfolioCreate(name="Second", client_id=client.id))
        names = [p.name for p in PortfolioService.get_portfolios_by_client(client.id)]
        assert names == ["Core", "Second"]

    def test_search(self, portfolio):
        assert [p.id for p in PortfolioService.search_portfolios("cor")] == [portfolio.id]
        assert PortfolioService.search_portfolios("nothing") == []

    def test_unknown_portfolio(self):
        with pytest.raises(NotFoundError):
            PortfolioService.get_portfolio(999)
        with pytest.raises(NotFoundError):
            PortfolioService.delete_portfolio(999)

    def test_delete_cascades(self, portfolio, make_asset):
        asset = make_asset()
        AssetService.record_transaction(asset.id, "BUY", Decimal("100"), Decimal("150"))

        PortfolioService.delete_portfolio(portfolio.id)

        with pytest.raises(NotFoundError):
            PortfolioService.get_portfolio(portfolio.id)
        with pytest.raises(NotFoundError):
            AssetService.get_asset(asset.id)


class TestClientTotals:

    def test_only_active_portfolios_count(self, client, portfolio, make_asset):
        make_asset()
        second = PortfolioService.create_portfolio(PortfolioCreate(name="Second", client_id=client.id))
        AssetService.create_asset(_gold_request(second.id))

        assert PortfolioService.get_total_value_by_client(client.id) == Decimal("17000")

        PortfolioService.deactivate_portfolio(second.id)
        assert PortfolioService.get_total_value_by_client(client.id) == Decimal("15000")
        assert [p.id for p in PortfolioService.get_portfolios_by_client(client.id, active_only=True)] == [portfolio.id]

        PortfolioService.activate_portfolio(second.id)
        assert PortfolioService.get_total_value_by_client(client.id) == Decimal("17000")

    def test_unknown_client(self):
        with pytest.raises(NotFoundError):
            PortfolioService.get_total_value_by_client(5)


class TestRecalculate:

    def test_corrects_drifted_values(self, engine, portfolio, make_asset):
        asset = make_asset()
        with Session(engine) as session:
            record = session.get(AssetRecord, asset.id)
            record.current_price = Decimal("200")
            session.add(record)
            session.commit()

        recalculated = PortfolioService.recalculate_total_value(portfolio.id)

        assert recalculated.total_value == Decimal("20000")
        assert AssetService.get_asset(asset.id).current_value == Decimal("20000")

    def test_failure_rolls_back_every_write(self, engine, portfolio, make_asset):
        first = make_asset()
        second = make_asset(name="Gold bar", symbol=None, asset_type="GOLD", quantity=1,
                            purchase_price=Decimal("2000"))
        with Session(engine) as session:
            drifted = session.get(AssetRecord, first.id)
            drifted.current_value = Decimal("1")
            broken = session.get(AssetRecord, second.id)
            broken.quantity = None
            session.add(drifted)
            session.add(broken)
            session.commit()

        with pytest.raises(InconsistentStateError):
            PortfolioService.recalculate_total_value(portfolio.id)

        with Session(engine) as session:
            assert session.get(AssetRecord, first.id).current_value == Decimal("1")
            assert session.get(PortfolioRecord, portfolio.id).total_value == Decimal("17000")


class TestSummaries:

    def test_summary(self, portfolio, make_asset):
        asset = make_asset()
        AssetService.update_asset_price(asset.id, Decimal("175.50"))
        AssetService.create_asset(_gold_request(portfolio.id))

        summary = PortfolioService.get_portfolio_summary(portfolio.id)

        assert isinstance(summary, PortfolioSummary)
        assert summary.asset_count == 2
        assert summary.total_value == Decimal("19550.00")
        assert summary.total_cost == Decimal("17000")
        assert summary.total_profit_loss == Decimal("2550.00")
        assert summary.total_profit_loss_percentage == Decimal("15.0000")
        assert summary.value_by_type == {"STOCK": Decimal("17550.00"), "GOLD": Decimal("2000")}
        assert Decimal(summary.to_dict()["value_by_type"]["GOLD"]) == Decimal("2000")

    def test_view(self, portfolio, make_asset):
        make_asset()
        view = PortfolioService.get_portfolio_view(portfolio.id)
        assert view.asset_count == 1
        assert view.to_dict()["assets"][0]["name"] == "Apple Inc."

    def test_holdings_frame(self, portfolio, make_asset):
        make_asset()
        AssetService.create_asset(_gold_request(portfolio.id))

        frame = PortfolioService.get_holdings_frame(portfolio.id)

        assert list(frame.columns) == HOLDINGS_COLUMNS
        assert len(frame) == 2
        assert frame["weight_pct"].sum() == pytest.approx(100.0)
        assert frame.loc[frame["asset_type"] == "GOLD", "current_value"].iloc[0] == pytest.approx(2000.0)

    def test_allocation_frame(self, portfolio, make_asset):
        make_asset()
        make_asset(name="Microsoft", symbol="MSFT", quantity=Decimal("10"), purchase_price=Decimal("500"))
        AssetService.create_asset(_gold_request(portfolio.id))

        allocation = PortfolioService.get_allocation_frame(portfolio.id)

        assert list(allocation.index) == ["STOCK", "GOLD"]
        assert allocation.loc["STOCK", "asset_count"] == 2
        assert allocation.loc["STOCK", "current_value"] == pytest.approx(20000.0)
        assert allocation.loc["GOLD", "weight_pct"] == pytest.approx(9.09)

    def test_empty_frames(self, portfolio):
        assert PortfolioService.get_holdings_frame(portfolio.id).empty
        assert PortfolioService.get_allocation_frame(portfolio.id).empty


def _gold_request(portfolio_id: int) -> AssetCreate:
    return AssetCreate(
        name="Gold bar",
        asset_type="GOLD",
        quantity=Decimal("1"),
        purchase_price=Decimal("2000"),
        weight_unit="BAR",
        portfolio_id=portfolio_id,
    )
