"""
Portfolio Repository - data access layer for the Portfolio aggregate.
Loading a portfolio loads its assets and recomputes the total from them.
Writes into a passed session are only flushed, the caller commits.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from sqlmodel import Session, select

from core import NotFoundError, Portfolio
from core.valuation import ZERO
from db_engine import get_engine
from models import AssetRecord, PortfolioRecord, TransactionRecord
from repositories.asset_repository import AssetRepository


def _to_domain(record: PortfolioRecord, sess: Session) -> Portfolio:
    assets = AssetRepository.get_by_portfolio(record.id, session=sess)
    return Portfolio(
        name=record.name,
        client_id=record.client_id,
        description=record.description,
        active=record.active,
        assets=assets,
        portfolio_id=record.id,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def delete_portfolio_rows(sess: Session, portfolio_id: int) -> bool:
    """Delete a portfolio row with its assets and their transactions, without committing."""
    record = sess.get(PortfolioRecord, portfolio_id)
    if record is None:
        return False
    asset_ids = sess.exec(select(AssetRecord.id).where(AssetRecord.portfolio_id == portfolio_id)).all()
    if asset_ids:
        for tx in sess.exec(select(TransactionRecord).where(TransactionRecord.asset_id.in_(asset_ids))).all():
            sess.delete(tx)
        for asset in sess.exec(select(AssetRecord).where(AssetRecord.portfolio_id == portfolio_id)).all():
            sess.delete(asset)
    sess.delete(record)
    return True


class PortfolioRepository:
    """Repository for Portfolio CRUD operations."""

    @staticmethod
    def add(portfolio: Portfolio, session: Optional[Session] = None) -> Portfolio:
        """
        Insert a new portfolio together with any assets it already holds.

        Args:
            portfolio: Unsaved portfolio
            session: Optional existing session for transaction reuse

        Returns:
            The same Portfolio with ids assigned
        """
        def _create_portfolio(sess: Session) -> Portfolio:
            record = PortfolioRecord(
                name=portfolio.name,
                description=portfolio.description,
                client_id=portfolio.client_id,
                total_value=portfolio.recalculate_total_value(),
                active=portfolio.active,
            )
            sess.add(record)
            sess.flush()
            sess.refresh(record)
            portfolio.id = record.id
            portfolio.created_at = record.created_at
            portfolio.updated_at = record.updated_at
            for asset in portfolio.assets:
                asset.portfolio_id = record.id
                if asset.id is None:
                    AssetRepository.add(asset, session=sess)
                else:
                    AssetRepository.save(asset, session=sess)
            return portfolio

        if session is not None:
            return _create_portfolio(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                result = _create_portfolio(session)
                session.commit()
                return result

    @staticmethod
    def save(portfolio: Portfolio, session: Optional[Session] = None) -> Portfolio:
        """
        Write a portfolio's own fields and its recomputed total back to storage.
        Assets are saved separately through AssetRepository.

        Raises:
            NotFoundError: if the portfolio has no stored row
        """
        def _save(sess: Session) -> Portfolio:
            record = sess.get(PortfolioRecord, portfolio.id) if portfolio.id is not None else None
            if record is None:
                raise NotFoundError("Portfolio", portfolio.id)
            record.name = portfolio.name
            record.description = portfolio.description
            record.client_id = portfolio.client_id
            record.active = portfolio.active
            record.total_value = portfolio.total_value
            record.updated_at = datetime.now()
            sess.add(record)
            sess.flush()
            sess.refresh(record)
            portfolio.updated_at = record.updated_at
            return portfolio

        if session is not None:
            return _save(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                result = _save(session)
                session.commit()
                return result

    @staticmethod
    def get_by_id(
        portfolio_id: int,
        session: Optional[Session] = None
    ) -> Optional[Portfolio]:
        """
        Retrieve a portfolio by its ID.

        Args:
            portfolio_id: Portfolio ID to look up
            session: Optional existing session for transaction reuse

        Returns:
            Portfolio or None if not found
        """
        def _get_by_id(sess: Session) -> Optional[Portfolio]:
            record = sess.get(PortfolioRecord, portfolio_id)
            return _to_domain(record, sess) if record else None

        if session is not None:
            return _get_by_id(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_id(session)

    @staticmethod
    def get_all(session: Optional[Session] = None) -> List[Portfolio]:
        """Retrieve all portfolios."""
        def _get_all(sess: Session) -> List[Portfolio]:
            records = sess.exec(select(PortfolioRecord).order_by(PortfolioRecord.id)).all()
            return [_to_domain(r, sess) for r in records]

        if session is not None:
            return _get_all(session)
        else:
            with Session(get_engine()) as session:
                return _get_all(session)

    @staticmethod
    def get_by_client(
        client_id: int,
        active_only: bool = False,
        session: Optional[Session] = None
    ) -> List[Portfolio]:
        """Retrieve the portfolios recorded against a client."""
        def _get_by_client(sess: Session) -> List[Portfolio]:
            statement = select(PortfolioRecord).where(PortfolioRecord.client_id == client_id)
            if active_only:
                statement = statement.where(PortfolioRecord.active == True)  # noqa: E712
            records = sess.exec(statement.order_by(PortfolioRecord.id)).all()
            return [_to_domain(r, sess) for r in records]

        if session is not None:
            return _get_by_client(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_client(session)

    @staticmethod
    def search(term: str, session: Optional[Session] = None) -> List[Portfolio]:
        """Find portfolios whose name contains the term (case-insensitive)."""
        pattern = f"%{term.strip()}%"

        def _search(sess: Session) -> List[Portfolio]:
            statement = (
                select(PortfolioRecord)
                .where(PortfolioRecord.name.ilike(pattern))
                .order_by(PortfolioRecord.id)
            )
            return [_to_domain(r, sess) for r in sess.exec(statement).all()]

        if session is not None:
            return _search(session)
        else:
            with Session(get_engine()) as session:
                return _search(session)

    @staticmethod
    def get_stored_total(portfolio_id: int, session: Optional[Session] = None) -> Optional[Decimal]:
        """The total last written for a portfolio, without loading its assets."""
        def _stored(sess: Session) -> Optional[Decimal]:
            record = sess.get(PortfolioRecord, portfolio_id)
            return record.total_value if record else None

        if session is not None:
            return _stored(session)
        else:
            with Session(get_engine()) as session:
                return _stored(session)

    @staticmethod
    def total_value_by_client(client_id: int, session: Optional[Session] = None) -> Decimal:
        """Sum of stored totals over a client's active portfolios."""
        def _total(sess: Session) -> Decimal:
            statement = select(PortfolioRecord.total_value).where(
                PortfolioRecord.client_id == client_id,
                PortfolioRecord.active == True,  # noqa: E712
            )
            return sum((v for v in sess.exec(statement).all() if v is not None), ZERO)

        if session is not None:
            return _total(session)
        else:
            with Session(get_engine()) as session:
                return _total(session)

    @staticmethod
    def delete(portfolio_id: int, session: Optional[Session] = None) -> bool:
        """
        Delete a portfolio, its assets and their transactions.

        Returns:
            True if the portfolio existed, False otherwise
        """
        def _delete(sess: Session) -> bool:
            try:
                deleted = delete_portfolio_rows(sess, portfolio_id)
                if deleted:
                    sess.flush()
                return deleted
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
