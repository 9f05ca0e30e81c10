"""
Client service - client records and their lifecycle.
"""

import logging
from typing import List

from core import NotFoundError, ValidationError
from db_engine import unit_of_work
from models import ClientRecord
from repositories import ClientRepository, PortfolioRepository
from schemas import ClientCreate, ClientUpdate
from services.locks import aggregate_lock

logger = logging.getLogger(__name__)


def _require_client(client_id: int, session=None) -> ClientRecord:
    client = ClientRepository.get_by_id(client_id, session=session)
    if client is None:
        raise NotFoundError("Client", client_id)
    return client


class ClientService:
    """Service for client CRUD operations."""

    @staticmethod
    def create_client(request: ClientCreate) -> ClientRecord:
        """
        Create a client.

        Raises:
            ValidationError: if the email is already registered
        """
        with unit_of_work() as session:
            if ClientRepository.get_by_email(request.email, session=session) is not None:
                logger.warning(f"Rejected duplicate client email {request.email}")
                raise ValidationError(f"Email already registered: {request.email}", field="email")
            client = ClientRepository.add(
                first_name=request.first_name,
                last_name=request.last_name,
                email=request.email,
                phone=request.phone,
                address=request.address,
                session=session,
            )

        logger.info(f"Created client {client.id} ({client.full_name})")
        return client

    @staticmethod
    def get_client(client_id: int) -> ClientRecord:
        return _require_client(client_id)

    @staticmethod
    def get_all_clients() -> List[ClientRecord]:
        return ClientRepository.get_all()

    @staticmethod
    def get_active_clients() -> List[ClientRecord]:
        return ClientRepository.get_all(active_only=True)

    @staticmethod
    def search_clients(term: str) -> List[ClientRecord]:
        """Clients whose name or email contains the term."""
        if not term or not term.strip():
            return ClientRepository.get_all()
        return ClientRepository.search(term)

    @staticmethod
    def update_client(client_id: int, request: ClientUpdate) -> ClientRecord:
        """
        Edit a client's contact details.

        Raises:
            NotFoundError: unknown client
            ValidationError: new email already used by another client
        """
        with unit_of_work() as session:
            _require_client(client_id, session)
            if request.email is not None:
                owner = ClientRepository.get_by_email(request.email, session=session)
                if owner is not None and owner.id != client_id:
                    raise ValidationError(f"Email already registered: {request.email}", field="email")
            client = ClientRepository.update(client_id, session=session, **request.model_dump(exclude_unset=True))

        logger.info(f"Updated client {client_id}")
        return client

    @staticmethod
    def activate_client(client_id: int) -> ClientRecord:
        return ClientService._set_active(client_id, True)

    @staticmethod
    def deactivate_client(client_id: int) -> ClientRecord:
        """Soft delete."""
        return ClientService._set_active(client_id, False)

    @staticmethod
    def _set_active(client_id: int, active: bool) -> ClientRecord:
        client = ClientRepository.update(client_id, active=active)
        if client is None:
            raise NotFoundError("Client", client_id)
        logger.info(f"Client {client_id} {'activated' if active else 'deactivated'}")
        return client

    @staticmethod
    def delete_client(client_id: int) -> None:
        """
        Delete a client with every portfolio recorded against it.
        The client stays locked while its portfolios are collected, so no
        portfolio can be added to it before they are all locked and deleted.

        Raises:
            NotFoundError: unknown client
        """
        with aggregate_lock("client", client_id):
            portfolio_ids = [p.id for p in PortfolioRepository.get_by_client(client_id)]
            with aggregate_lock("portfolio", *portfolio_ids):
                with unit_of_work() as session:
                    if not ClientRepository.delete(client_id, session=session):
                        raise NotFoundError("Client", client_id)

        logger.info(f"Deleted client {client_id} with portfolios {portfolio_ids}")

    @staticmethod
    def get_active_client_count() -> int:
        return ClientRepository.count_active()
