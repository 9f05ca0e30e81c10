"""
Asset Repository - data access layer for the Asset aggregate.
Maps between the core Asset and the single-table AssetRecord.
Optimized with optional session parameter for transaction reuse:
writes into a passed session are only flushed, the caller commits.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from sqlmodel import Session, select

from core import Asset, AssetType, NotFoundError, Transaction
from core.details import DETAILS_BY_TYPE, all_detail_field_names, detail_field_names
from core.valuation import ZERO
from db_engine import get_engine
from models import AssetRecord, PortfolioRecord, TransactionRecord
from repositories.transaction_repository import record_to_transaction


def record_to_asset(record: AssetRecord, transactions: Optional[List[Transaction]] = None) -> Asset:
    """Build a core Asset from its stored row."""
    asset_type = AssetType(record.asset_type)
    detail_values = {}
    for name in detail_field_names(asset_type):
        value = getattr(record, name)
        if value is not None:
            detail_values[name] = value
    return Asset(
        name=record.name,
        asset_type=asset_type,
        quantity=record.quantity,
        purchase_price=record.purchase_price,
        current_price=record.current_price,
        symbol=record.symbol,
        purchase_date=record.purchase_date,
        notes=record.notes,
        details=DETAILS_BY_TYPE[asset_type](**detail_values),
        portfolio_id=record.portfolio_id,
        asset_id=record.id,
        transactions=transactions,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _write_record(record: AssetRecord, asset: Asset) -> None:
    """Copy an asset's state onto a row, clearing columns of other variants."""
    record.portfolio_id = asset.portfolio_id
    record.asset_type = asset.asset_type.value
    record.name = asset.name
    record.symbol = asset.symbol
    record.quantity = asset.quantity
    record.purchase_price = asset.purchase_price
    record.current_price = asset.current_price
    record.current_value = asset.current_value
    record.purchase_date = asset.purchase_date
    record.notes = asset.notes

    own = detail_field_names(asset.asset_type)
    for name in all_detail_field_names():
        setattr(record, name, getattr(asset.details, name) if name in own else None)


class AssetRepository:
    """Repository for Asset CRUD operations."""

    @staticmethod
    def add(asset: Asset, session: Optional[Session] = None) -> Asset:
        """
        Insert a new asset.
        The current value is recalculated before the row is written.

        Args:
            asset: Unsaved asset (its portfolio_id must be set)
            session: Optional existing session for transaction reuse

        Returns:
            The same Asset with its id assigned
        """
        def _create_asset(sess: Session) -> Asset:
            asset.recalculate_current_value()
            record = AssetRecord(name=asset.name, asset_type=asset.asset_type.value,
                                 purchase_price=asset.purchase_price)
            _write_record(record, asset)
            sess.add(record)
            sess.flush()
            sess.refresh(record)
            asset.assign_id(record.id)
            asset.created_at = record.created_at
            asset.updated_at = record.updated_at
            return asset

        if session is not None:
            return _create_asset(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                result = _create_asset(session)
                session.commit()
                return result

    @staticmethod
    def save(asset: Asset, session: Optional[Session] = None) -> Asset:
        """
        Write an existing asset's state back to storage.
        The current value is recalculated before the row is written.

        Raises:
            NotFoundError: if the asset has no stored row
        """
        def _save(sess: Session) -> Asset:
            record = sess.get(AssetRecord, asset.id) if asset.id is not None else None
            if record is None:
                raise NotFoundError("Asset", asset.id)
            asset.recalculate_current_value()
            _write_record(record, asset)
            record.updated_at = datetime.now()
            sess.add(record)
            sess.flush()
            sess.refresh(record)
            asset.updated_at = record.updated_at
            return asset

        if session is not None:
            return _save(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                result = _save(session)
                session.commit()
                return result

    @staticmethod
    def get_by_id(
        asset_id: int,
        with_transactions: bool = False,
        session: Optional[Session] = None
    ) -> Optional[Asset]:
        """
        Retrieve an asset by its ID.

        Args:
            asset_id: Asset ID to look up
            with_transactions: Also load the asset's transactions
            session: Optional existing session for transaction reuse

        Returns:
            Asset or None if not found
        """
        def _get_by_id(sess: Session) -> Optional[Asset]:
            record = sess.get(AssetRecord, asset_id)
            if record is None:
                return None
            transactions = None
            if with_transactions:
                statement = (
                    select(TransactionRecord)
                    .where(TransactionRecord.asset_id == asset_id)
                    .order_by(TransactionRecord.transaction_date, TransactionRecord.id)
                )
                transactions = [record_to_transaction(tx) for tx in sess.exec(statement).all()]
            return record_to_asset(record, transactions)

        if session is not None:
            return _get_by_id(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_id(session)

    @staticmethod
    def get_all(session: Optional[Session] = None) -> List[Asset]:
        """Retrieve all assets."""
        def _get_all(sess: Session) -> List[Asset]:
            statement = select(AssetRecord).order_by(AssetRecord.id)
            return [record_to_asset(r) for r in sess.exec(statement).all()]

        if session is not None:
            return _get_all(session)
        else:
            with Session(get_engine()) as session:
                return _get_all(session)

    @staticmethod
    def get_by_portfolio(portfolio_id: int, session: Optional[Session] = None) -> List[Asset]:
        """Retrieve the assets of a portfolio in insertion order."""
        def _get_by_portfolio(sess: Session) -> List[Asset]:
            statement = (
                select(AssetRecord)
                .where(AssetRecord.portfolio_id == portfolio_id)
                .order_by(AssetRecord.id)
            )
            return [record_to_asset(r) for r in sess.exec(statement).all()]

        if session is not None:
            return _get_by_portfolio(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_portfolio(session)

    @staticmethod
    def get_by_type(asset_type: AssetType, session: Optional[Session] = None) -> List[Asset]:
        """Retrieve all assets of one variant."""
        def _get_by_type(sess: Session) -> List[Asset]:
            statement = (
                select(AssetRecord)
                .where(AssetRecord.asset_type == AssetType(asset_type).value)
                .order_by(AssetRecord.id)
            )
            return [record_to_asset(r) for r in sess.exec(statement).all()]

        if session is not None:
            return _get_by_type(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_type(session)

    @staticmethod
    def get_by_client(client_id: int, session: Optional[Session] = None) -> List[Asset]:
        """Retrieve the assets of every portfolio a client holds."""
        def _get_by_client(sess: Session) -> List[Asset]:
            statement = (
                select(AssetRecord)
                .join(PortfolioRecord, AssetRecord.portfolio_id == PortfolioRecord.id)
                .where(PortfolioRecord.client_id == client_id)
                .order_by(AssetRecord.id)
            )
            return [record_to_asset(r) for r in sess.exec(statement).all()]

        if session is not None:
            return _get_by_client(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_client(session)

    @staticmethod
    def search(term: str, session: Optional[Session] = None) -> List[Asset]:
        """
        Find assets whose name or symbol contains the term (case-insensitive).
        """
        pattern = f"%{term.strip()}%"

        def _search(sess: Session) -> List[Asset]:
            statement = (
                select(AssetRecord)
                .where(AssetRecord.name.ilike(pattern) | AssetRecord.symbol.ilike(pattern))
                .order_by(AssetRecord.id)
            )
            return [record_to_asset(r) for r in sess.exec(statement).all()]

        if session is not None:
            return _search(session)
        else:
            with Session(get_engine()) as session:
                return _search(session)

    @staticmethod
    def total_value_by_type(asset_type: AssetType, session: Optional[Session] = None) -> Decimal:
        """Sum of stored current values across all assets of one variant."""
        def _total(sess: Session) -> Decimal:
            statement = select(AssetRecord.current_value).where(
                AssetRecord.asset_type == AssetType(asset_type).value
            )
            return sum((v for v in sess.exec(statement).all() if v is not None), ZERO)

        if session is not None:
            return _total(session)
        else:
            with Session(get_engine()) as session:
                return _total(session)

    @staticmethod
    def delete(asset_id: int, session: Optional[Session] = None) -> bool:
        """
        Delete an asset and all its transactions.
        Note: Transactions are deleted first due to foreign key constraints.

        Args:
            asset_id: Asset ID to delete
            session: Optional existing session for transaction reuse

        Returns:
            True if the asset existed, False otherwise
        """
        def _delete(sess: Session) -> bool:
            try:
                record = sess.get(AssetRecord, asset_id)
                if record is None:
                    return False
                statement = select(TransactionRecord).where(TransactionRecord.asset_id == asset_id)
                for tx in sess.exec(statement).all():
                    sess.delete(tx)
                sess.delete(record)
                sess.flush()
                return True
            except Exception:
                sess.rollback()
                raise

        if session is not None:
            return _delete(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                result = _delete(session)
                session.commit()
                return result
