"""
Client Repository - data access layer for ClientRecord model.
Optimized with optional session parameter for transaction reuse:
writes into a passed session are only flushed, the caller commits.
"""

from datetime import datetime
from typing import Optional, List
from sqlmodel import Session, select

from db_engine import get_engine
from models import ClientRecord, PortfolioRecord
from repositories.portfolio_repository import delete_portfolio_rows

CLIENT_FIELDS = ("first_name", "last_name", "email", "phone", "address")


class ClientRepository:
    """Repository for Client CRUD operations."""

    @staticmethod
    def add(
        first_name: str,
        last_name: str,
        email: str,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        session: Optional[Session] = None
    ) -> ClientRecord:
        """
        Add a new client to the database.

        Args:
            first_name: Client first name
            last_name: Client last name
            email: Unique email address
            phone: Optional phone number
            address: Optional postal address
            session: Optional existing session for transaction reuse

        Returns:
            Created ClientRecord
        """
        def _create_client(sess: Session) -> ClientRecord:
            client = ClientRecord(
                first_name=first_name,
                last_name=last_name,
                email=email,
                phone=phone,
                address=address,
            )
            sess.add(client)
            sess.flush()
            sess.refresh(client)
            return client

        if session is not None:
            return _create_client(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                result = _create_client(session)
                session.commit()
                return result

    @staticmethod
    def get_by_id(client_id: int, session: Optional[Session] = None) -> Optional[ClientRecord]:
        """Retrieve a client by ID, or None if not found."""
        def _get_by_id(sess: Session) -> Optional[ClientRecord]:
            return sess.get(ClientRecord, client_id)

        if session is not None:
            return _get_by_id(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_id(session)

    @staticmethod
    def get_by_email(email: str, session: Optional[Session] = None) -> Optional[ClientRecord]:
        """Retrieve a client by email (case-insensitive)."""
        def _get_by_email(sess: Session) -> Optional[ClientRecord]:
            statement = select(ClientRecord).where(ClientRecord.email.ilike(email.strip()))
            return sess.exec(statement).first()

        if session is not None:
            return _get_by_email(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_email(session)

    @staticmethod
    def get_all(active_only: bool = False, session: Optional[Session] = None) -> List[ClientRecord]:
        """Retrieve all clients, optionally only active ones."""
        def _get_all(sess: Session) -> List[ClientRecord]:
            statement = select(ClientRecord)
            if active_only:
                statement = statement.where(ClientRecord.active == True)  # noqa: E712
            return list(sess.exec(statement.order_by(ClientRecord.id)).all())

        if session is not None:
            return _get_all(session)
        else:
            with Session(get_engine()) as session:
                return _get_all(session)

    @staticmethod
    def search(term: str, session: Optional[Session] = None) -> List[ClientRecord]:
        """Find clients whose first name, last name or email contains the term."""
        pattern = f"%{term.strip()}%"

        def _search(sess: Session) -> List[ClientRecord]:
            statement = (
                select(ClientRecord)
                .where(
                    ClientRecord.first_name.ilike(pattern)
                    | ClientRecord.last_name.ilike(pattern)
                    | ClientRecord.email.ilike(pattern)
                )
                .order_by(ClientRecord.id)
            )
            return list(sess.exec(statement).all())

        if session is not None:
            return _search(session)
        else:
            with Session(get_engine()) as session:
                return _search(session)

    @staticmethod
    def update(client_id: int, session: Optional[Session] = None, **fields) -> Optional[ClientRecord]:
        """
        Update an existing client.
        Only updates fields that are provided (not None); active is always applied.

        Returns:
            Updated ClientRecord or None if not found
        """
        def _update(sess: Session) -> Optional[ClientRecord]:
            client = sess.get(ClientRecord, client_id)
            if client is None:
                return None
            for name in CLIENT_FIELDS:
                if fields.get(name) is not None:
                    setattr(client, name, fields[name])
            if fields.get("active") is not None:
                client.active = fields["active"]
            client.updated_at = datetime.now()
            sess.add(client)
            sess.flush()
            sess.refresh(client)
            return client

        if session is not None:
            return _update(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                result = _update(session)
                session.commit()
                return result

    @staticmethod
    def count_active(session: Optional[Session] = None) -> int:
        """Number of active clients."""
        return len(ClientRepository.get_all(active_only=True, session=session))

    @staticmethod
    def delete(client_id: int, session: Optional[Session] = None) -> bool:
        """
        Delete a client and every portfolio recorded against it.

        Returns:
            True if the client existed, False otherwise
        """
        def _delete(sess: Session) -> bool:
            try:
                client = sess.get(ClientRecord, client_id)
                if client is None:
                    return False
                portfolio_ids = sess.exec(
                    select(PortfolioRecord.id).where(PortfolioRecord.client_id == client_id)
                ).all()
                for portfolio_id in portfolio_ids:
                    delete_portfolio_rows(sess, portfolio_id)
                sess.delete(client)
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
