"""
Portfolio service for portfolio lifecycle, totals and holdings summaries.
"""

import logging
from decimal import Decimal
from typing import List

import pandas as pd

from core import NotFoundError, Portfolio
from core.valuation import ZERO
from db_engine import get_session, unit_of_work
from repositories import AssetRepository, ClientRepository, PortfolioRepository
from schemas import PortfolioCreate, PortfolioUpdate
from services.locks import aggregate_lock
from services.projections import PortfolioSummary, PortfolioView

logger = logging.getLogger(__name__)

HOLDINGS_COLUMNS = [
    'asset_id',
    'name',
    'symbol',
    'asset_type',
    'quantity',
    'purchase_price',
    'current_price',
    'current_value',
    'cost_basis',
    'pnl',
    'pnl_pct',
    'weight_pct',
]


def _require_portfolio(portfolio_id: int, session=None) -> Portfolio:
    portfolio = PortfolioRepository.get_by_id(portfolio_id, session=session)
    if portfolio is None:
        raise NotFoundError("Portfolio", portfolio_id)
    return portfolio


def _require_client(client_id: int, session=None) -> None:
    if ClientRepository.get_by_id(client_id, session=session) is None:
        raise NotFoundError("Client", client_id)


def _as_float(value) -> float:
    return float(value) if value is not None else float("nan")


class PortfolioService:
    """
    Service for portfolio calculations and lifecycle.
    Totals are always recomputed from the assets before being stored.
    """

    @staticmethod
    def create_portfolio(request: PortfolioCreate) -> Portfolio:
        """
        Create an empty, active portfolio for an existing client.

        Raises:
            NotFoundError: if the client does not exist
        """
        with aggregate_lock("client", request.client_id):
            with unit_of_work() as session:
                _require_client(request.client_id, session)
                portfolio = Portfolio(
                    name=request.name,
                    description=request.description,
                    client_id=request.client_id,
                )
                PortfolioRepository.add(portfolio, session=session)

        logger.info(f"Created portfolio {portfolio.id} ({portfolio.name}) for client {portfolio.client_id}")
        return portfolio

    @staticmethod
    def get_portfolio(portfolio_id: int) -> Portfolio:
        """Get a portfolio with its assets. Raises NotFoundError."""
        return _require_portfolio(portfolio_id)

    @staticmethod
    def get_portfolio_view(portfolio_id: int) -> PortfolioView:
        return PortfolioView.from_portfolio(_require_portfolio(portfolio_id))

    @staticmethod
    def get_all_portfolios() -> List[Portfolio]:
        return PortfolioRepository.get_all()

    @staticmethod
    def get_portfolios_by_client(client_id: int, active_only: bool = False) -> List[Portfolio]:
        """
        Portfolios recorded against a client.
        Returns a list whatever the number of portfolios the caller allows per client.
        """
        with get_session() as session:
            _require_client(client_id, session)
            return PortfolioRepository.get_by_client(client_id, active_only=active_only, session=session)

    @staticmethod
    def search_portfolios(term: str) -> List[Portfolio]:
        if not term or not term.strip():
            return PortfolioRepository.get_all()
        return PortfolioRepository.search(term)

    @staticmethod
    def update_portfolio(portfolio_id: int, request: PortfolioUpdate) -> Portfolio:
        """
        Edit name, description or owning client.

        Raises:
            NotFoundError: unknown portfolio or client
        """
        # client locks are always taken before portfolio locks
        with aggregate_lock("client", request.client_id), aggregate_lock("portfolio", portfolio_id):
            with unit_of_work() as session:
                portfolio = _require_portfolio(portfolio_id, session)
                if request.name is not None:
                    portfolio.name = request.name
                if request.description is not None:
                    portfolio.description = request.description
                if request.client_id is not None and request.client_id != portfolio.client_id:
                    _require_client(request.client_id, session)
                    portfolio.client_id = request.client_id
                portfolio.recalculate_total_value()
                PortfolioRepository.save(portfolio, session=session)

        logger.info(f"Updated portfolio {portfolio_id}")
        return portfolio

    @staticmethod
    def activate_portfolio(portfolio_id: int) -> Portfolio:
        return PortfolioService._set_active(portfolio_id, True)

    @staticmethod
    def deactivate_portfolio(portfolio_id: int) -> Portfolio:
        """Soft delete: the portfolio stays stored but leaves client totals."""
        return PortfolioService._set_active(portfolio_id, False)

    @staticmethod
    def _set_active(portfolio_id: int, active: bool) -> Portfolio:
        with aggregate_lock("portfolio", portfolio_id):
            with unit_of_work() as session:
                portfolio = _require_portfolio(portfolio_id, session)
                if active:
                    portfolio.activate()
                else:
                    portfolio.deactivate()
                PortfolioRepository.save(portfolio, session=session)

        logger.info(f"Portfolio {portfolio_id} {'activated' if active else 'deactivated'}")
        return portfolio

    @staticmethod
    def delete_portfolio(portfolio_id: int) -> None:
        """
        Delete a portfolio with all its assets and their transactions.

        Raises:
            NotFoundError: unknown portfolio
        """
        with aggregate_lock("portfolio", portfolio_id):
            with unit_of_work() as session:
                if not PortfolioRepository.delete(portfolio_id, session=session):
                    raise NotFoundError("Portfolio", portfolio_id)

        logger.info(f"Deleted portfolio {portfolio_id}")

    @staticmethod
    def get_total_value_by_client(client_id: int) -> Decimal:
        """Sum of the totals of a client's active portfolios."""
        with get_session() as session:
            _require_client(client_id, session)
            return PortfolioRepository.total_value_by_client(client_id, session=session)

    @staticmethod
    def recalculate_total_value(portfolio_id: int) -> Portfolio:
        """
        Revalue every asset of a portfolio and store the fresh total.
        Use after prices were changed outside the services (e.g. a bulk import).

        Raises:
            NotFoundError: unknown portfolio
            InconsistentStateError: an asset has no quantity
        """
        with aggregate_lock("portfolio", portfolio_id):
            with unit_of_work() as session:
                portfolio = _require_portfolio(portfolio_id, session)
                previous = PortfolioRepository.get_stored_total(portfolio_id, session=session)
                for asset in portfolio.assets:
                    AssetRepository.save(asset, session=session)
                portfolio.recalculate_total_value()
                PortfolioRepository.save(portfolio, session=session)

        if previous != portfolio.total_value:
            logger.info(f"Portfolio {portfolio_id} total corrected from {previous} to {portfolio.total_value}")
        return portfolio

    @staticmethod
    def get_portfolio_summary(portfolio_id: int) -> PortfolioSummary:
        return PortfolioSummary.from_portfolio(_require_portfolio(portfolio_id))

    @staticmethod
    def get_holdings_frame(portfolio_id: int) -> pd.DataFrame:
        """
        Holdings table of a portfolio for display.

        Returns:
            DataFrame with one row per asset (HOLDINGS_COLUMNS), monetary
            columns as floats, weight_pct as share of the portfolio total
        """
        portfolio = _require_portfolio(portfolio_id)
        total = portfolio.total_value

        rows = []
        for asset in portfolio.assets:
            value = asset.current_value if asset.current_value is not None else ZERO
            weight = (value / total * 100) if total != ZERO else ZERO
            rows.append({
                'asset_id': asset.id,
                'name': asset.name,
                'symbol': asset.symbol,
                'asset_type': asset.asset_type.value,
                'quantity': _as_float(asset.quantity),
                'purchase_price': _as_float(asset.purchase_price),
                'current_price': _as_float(asset.current_price),
                'current_value': _as_float(asset.current_value),
                'cost_basis': _as_float(asset.cost_basis),
                'pnl': float(asset.profit_loss),
                'pnl_pct': float(asset.profit_loss_percentage),
                'weight_pct': round(float(weight), 2),
            })

        return pd.DataFrame(rows, columns=HOLDINGS_COLUMNS)

    @staticmethod
    def get_allocation_frame(portfolio_id: int) -> pd.DataFrame:
        """
        Value and weight per asset type, largest first.

        Returns:
            DataFrame indexed by asset_type with current_value, cost_basis,
            pnl, asset_count and weight_pct columns
        """
        holdings = PortfolioService.get_holdings_frame(portfolio_id)
        if holdings.empty:
            return pd.DataFrame(
                columns=['current_value', 'cost_basis', 'pnl', 'asset_count', 'weight_pct']
            ).rename_axis('asset_type')

        allocation = holdings.groupby('asset_type').agg(
            current_value=('current_value', 'sum'),
            cost_basis=('cost_basis', 'sum'),
            pnl=('pnl', 'sum'),
            asset_count=('asset_id', 'count'),
        )
        total = allocation['current_value'].sum()
        allocation['weight_pct'] = (allocation['current_value'] / total * 100).round(2) if total else 0.0
        return allocation.sort_values('current_value', ascending=False)
