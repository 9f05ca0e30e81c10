"""
Asset service - creation, edits, price updates and transaction recording.
Every change to an asset's value is followed by a recalculation of its
portfolio's total inside the same unit of work and under the portfolio's lock.
"""

import logging
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Iterator, List, Optional

from core import (
    Asset,
    AssetType,
    InvalidTransactionError,
    NotFoundError,
    Portfolio,
    Transaction,
    TransactionType,
    ValidationError,
    create_asset,
)
from core.valuation import ZERO, to_decimal
from db_engine import get_session, unit_of_work
from repositories import AssetRepository, PortfolioRepository, TransactionRepository
from schemas import AssetCreate, AssetUpdate
from services.locks import aggregate_lock
from services.projections import AssetView

logger = logging.getLogger(__name__)


def _require_asset(asset_id: int, session=None, with_transactions: bool = False) -> Asset:
    asset = AssetRepository.get_by_id(asset_id, with_transactions=with_transactions, session=session)
    if asset is None:
        raise NotFoundError("Asset", asset_id)
    return asset


def _require_portfolio(portfolio_id: int, session=None) -> Portfolio:
    portfolio = PortfolioRepository.get_by_id(portfolio_id, session=session)
    if portfolio is None:
        raise NotFoundError("Portfolio", portfolio_id)
    return portfolio


def _positive_price(value, field_name: str) -> Decimal:
    try:
        price = to_decimal(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be a number, got {value!r}", field=field_name)
    if price is None or price <= ZERO:
        raise ValidationError(f"{field_name} must be greater than 0", field=field_name)
    return price


@contextmanager
def _owner_lock(asset_id: int, *other_portfolio_ids) -> Iterator[Optional[int]]:
    """
    Hold the lock of the portfolio that owns an asset (plus any other given
    portfolios) and yield the owner's id.

    The owner is read again once the lock is held; if the asset moved in the
    meantime the locks are released and taken again for the new owner.

    Raises:
        NotFoundError: if the asset does not exist (or was deleted meanwhile)
    """
    while True:
        owner_id = _require_asset(asset_id).portfolio_id
        with aggregate_lock("portfolio", owner_id, *other_portfolio_ids):
            if _require_asset(asset_id).portfolio_id == owner_id:
                yield owner_id
                return
        logger.debug(f"Asset {asset_id} moved away from portfolio {owner_id} before locking, retrying")


class AssetService:
    """
    Service for asset operations.
    Returns core Asset/Transaction objects; use AssetView for response shaping.
    """

    @staticmethod
    def create_asset(request: AssetCreate) -> Asset:
        """
        Create an asset inside an existing portfolio.

        Raises:
            NotFoundError: if the portfolio does not exist
            ValidationError: if the attributes break a variant rule
        """
        with aggregate_lock("portfolio", request.portfolio_id):
            with unit_of_work() as session:
                portfolio = _require_portfolio(request.portfolio_id, session)
                asset = create_asset(request.asset_type, request.attributes())
                portfolio.add_asset(asset)
                AssetRepository.add(asset, session=session)
                PortfolioRepository.save(portfolio, session=session)

        logger.info(
            f"Created {asset.asset_type.value} asset {asset.id} ({asset.name}) in portfolio "
            f"{portfolio.id}; portfolio total now {portfolio.total_value}"
        )
        return asset

    @staticmethod
    def get_asset(asset_id: int, with_transactions: bool = False) -> Asset:
        """Get an asset by id. Raises NotFoundError."""
        return _require_asset(asset_id, with_transactions=with_transactions)

    @staticmethod
    def get_asset_view(asset_id: int, with_transactions: bool = False) -> AssetView:
        asset = _require_asset(asset_id, with_transactions=with_transactions)
        return AssetView.from_asset(asset, include_transactions=with_transactions)

    @staticmethod
    def get_all_assets() -> List[Asset]:
        return AssetRepository.get_all()

    @staticmethod
    def get_assets_by_portfolio(portfolio_id: int) -> List[Asset]:
        """Assets of a portfolio. Raises NotFoundError for an unknown portfolio."""
        with get_session() as session:
            return _require_portfolio(portfolio_id, session).assets

    @staticmethod
    def get_assets_by_type(asset_type) -> List[Asset]:
        return AssetRepository.get_by_type(AssetType(asset_type))

    @staticmethod
    def get_assets_by_client(client_id: int) -> List[Asset]:
        return AssetRepository.get_by_client(client_id)

    @staticmethod
    def search_assets(term: str) -> List[Asset]:
        """Assets whose name or symbol contains the term."""
        if not term or not term.strip():
            return AssetRepository.get_all()
        return AssetRepository.search(term)

    @staticmethod
    def update_asset(asset_id: int, request: AssetUpdate) -> Asset:
        """
        Edit an asset. Setting portfolio_id to another portfolio moves the
        asset there; both portfolio totals are recalculated.

        Raises:
            NotFoundError: unknown asset or target portfolio
            ValidationError: the edited asset breaks a variant rule
        """
        changes = request.changes()
        target_id = changes.pop("portfolio_id", None)

        with _owner_lock(asset_id, target_id) as source_id:
            with unit_of_work() as session:
                source = _require_portfolio(source_id, session) if source_id is not None else None
                asset = source.get_asset(asset_id) if source else _require_asset(asset_id, session)

                if changes:
                    asset.update(**changes)
                    asset.validate()

                target = None
                if target_id is not None and target_id != source_id:
                    target = _require_portfolio(target_id, session)
                    if source is not None:
                        source.remove_asset(asset)
                    target.add_asset(asset)
                elif source is not None:
                    source.recalculate_total_value()

                AssetRepository.save(asset, session=session)
                for portfolio in (source, target):
                    if portfolio is not None:
                        PortfolioRepository.save(portfolio, session=session)

        if target is not None:
            logger.info(f"Moved asset {asset_id} from portfolio {source_id} to {target_id}")
        logger.info(f"Updated asset {asset_id}: {', '.join(sorted(changes)) or 'no field changes'}")
        return asset

    @staticmethod
    def update_asset_price(asset_id: int, new_price) -> Asset:
        """
        Set an asset's current price, revalue it and refresh its portfolio total.

        Raises:
            NotFoundError: unknown asset
            ValidationError: price missing or not positive
        """
        price = _positive_price(new_price, "current_price")

        with _owner_lock(asset_id) as portfolio_id:
            with unit_of_work() as session:
                if portfolio_id is None:
                    asset = _require_asset(asset_id, session)
                    asset.current_price = price
                    AssetRepository.save(asset, session=session)
                else:
                    portfolio = _require_portfolio(portfolio_id, session)
                    asset = portfolio.update_asset_price(asset_id, price)
                    AssetRepository.save(asset, session=session)
                    PortfolioRepository.save(portfolio, session=session)

        logger.info(f"Asset {asset_id} repriced to {price}; current value {asset.current_value}")
        return asset

    @staticmethod
    def delete_asset(asset_id: int) -> None:
        """
        Delete an asset with its transactions and refresh its portfolio total.

        Raises:
            NotFoundError: unknown asset
        """
        with _owner_lock(asset_id) as portfolio_id:
            with unit_of_work() as session:
                if portfolio_id is not None:
                    portfolio = _require_portfolio(portfolio_id, session)
                    portfolio.remove_asset(portfolio.get_asset(asset_id))
                    AssetRepository.delete(asset_id, session=session)
                    PortfolioRepository.save(portfolio, session=session)
                elif not AssetRepository.delete(asset_id, session=session):
                    raise NotFoundError("Asset", asset_id)

        logger.info(f"Deleted asset {asset_id}")

    @staticmethod
    def record_transaction(
        asset_id: int,
        transaction_type,
        quantity,
        price,
        transaction_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> Transaction:
        """
        Record a transaction after checking its kind against the asset's variant.

        Raises:
            NotFoundError: unknown asset
            InvalidTransactionError: kind not allowed for this asset
            ValidationError: quantity or price out of range
        """
        with _owner_lock(asset_id):
            with unit_of_work() as session:
                asset = _require_asset(asset_id, session, with_transactions=True)

                try:
                    kind = TransactionType(getattr(transaction_type, "value", transaction_type))
                except ValueError:
                    logger.warning(f"Rejected unknown transaction type {transaction_type!r} on asset {asset_id}")
                    raise InvalidTransactionError(transaction_type, asset.asset_type)
                if not asset.is_transaction_kind_allowed(kind):
                    logger.warning(f"Rejected {kind.value} on {asset.asset_type.value} asset {asset_id}")
                    raise InvalidTransactionError(kind, asset.asset_type)

                if not asset.is_quantity_valid(quantity):
                    raise ValidationError(
                        f"Invalid transaction quantity {quantity} for {asset.asset_type.display_name}",
                        field="quantity",
                    )
                try:
                    unit_price = to_decimal(price)
                except ValueError:
                    raise ValidationError(f"price must be a number, got {price!r}", field="price")
                if unit_price is None or unit_price < ZERO:
                    raise ValidationError("Transaction price must not be negative", field="price")

                transaction = Transaction(
                    transaction_type=kind,
                    quantity=to_decimal(quantity),
                    price=unit_price,
                    transaction_date=transaction_date or date.today(),
                    notes=notes,
                )
                asset.add_transaction(transaction)
                TransactionRepository.add(transaction, session=session)

        logger.info(f"Recorded {kind.value} transaction {transaction.id} on asset {asset_id}")
        return transaction

    @staticmethod
    def get_transactions(asset_id: int) -> List[Transaction]:
        """Transactions of an asset, oldest first. Raises NotFoundError."""
        with get_session() as session:
            _require_asset(asset_id, session)
            return TransactionRepository.get_by_asset(asset_id, session=session)

    @staticmethod
    def get_total_value_by_type(asset_type) -> Decimal:
        return AssetRepository.total_value_by_type(AssetType(asset_type))

    @staticmethod
    def get_asset_types() -> List[AssetType]:
        return list(AssetType)
