"""
Transaction Repository - data access layer for asset transactions.
Optimized with optional session parameter for transaction reuse:
writes into a passed session are only flushed, the caller commits.
"""

from typing import Optional, List
from sqlmodel import Session, select

from core import Transaction, TransactionType
from db_engine import get_engine
from models import TransactionRecord


def record_to_transaction(record: TransactionRecord) -> Transaction:
    """Build a core Transaction from its stored row."""
    return Transaction(
        transaction_type=TransactionType(record.transaction_type),
        quantity=record.quantity,
        price=record.price,
        transaction_date=record.transaction_date,
        notes=record.notes,
        asset_id=record.asset_id,
        id=record.id,
        created_at=record.created_at,
    )


class TransactionRepository:
    """Repository for Transaction CRUD operations."""

    @staticmethod
    def add(transaction: Transaction, session: Optional[Session] = None) -> Transaction:
        """
        Insert a transaction that is already linked to a saved asset.

        Args:
            transaction: Transaction with asset_id set
            session: Optional existing session for transaction reuse

        Returns:
            The same Transaction with its id assigned
        """
        def _create_transaction(sess: Session) -> Transaction:
            record = TransactionRecord(
                asset_id=transaction.asset_id,
                transaction_type=TransactionType(transaction.transaction_type).value,
                transaction_date=transaction.transaction_date,
                quantity=transaction.quantity,
                price=transaction.price,
                notes=transaction.notes,
            )
            sess.add(record)
            sess.flush()
            sess.refresh(record)
            transaction.id = record.id
            transaction.created_at = record.created_at
            return transaction

        if session is not None:
            return _create_transaction(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                result = _create_transaction(session)
                session.commit()
                return result

    @staticmethod
    def get_by_asset(asset_id: int, session: Optional[Session] = None) -> List[Transaction]:
        """
        Retrieve all transactions for a specific asset, oldest first.

        Args:
            asset_id: Asset ID to look up
            session: Optional existing session for transaction reuse

        Returns:
            List of Transaction objects
        """
        def _get_by_asset(sess: Session) -> List[Transaction]:
            statement = (
                select(TransactionRecord)
                .where(TransactionRecord.asset_id == asset_id)
                .order_by(TransactionRecord.transaction_date, TransactionRecord.id)
            )
            return [record_to_transaction(r) for r in sess.exec(statement).all()]

        if session is not None:
            return _get_by_asset(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_asset(session)

    @staticmethod
    def get_by_id(transaction_id: int, session: Optional[Session] = None) -> Optional[Transaction]:
        """
        Retrieve a transaction by its ID.

        Returns:
            Transaction or None if not found
        """
        def _get_by_id(sess: Session) -> Optional[Transaction]:
            record = sess.get(TransactionRecord, transaction_id)
            return record_to_transaction(record) if record else None

        if session is not None:
            return _get_by_id(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_id(session)

    @staticmethod
    def delete(transaction_id: int, session: Optional[Session] = None) -> bool:
        """
        Delete a transaction by its ID.

        Returns:
            True if successful, False otherwise
        """
        def _delete(sess: Session) -> bool:
            try:
                record = sess.get(TransactionRecord, transaction_id)
                if record:
                    sess.delete(record)
                    sess.flush()
                    return True
                return False
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
