"""Shared fixtures: an isolated in-memory database per test."""

from decimal import Decimal

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

import db_engine
from models import AssetRecord, ClientRecord, PortfolioRecord, TransactionRecord  # noqa: F401
from schemas import AssetCreate, ClientCreate, PortfolioCreate
from services import AssetService, ClientService, PortfolioService


@pytest.fixture(autouse=True)
def engine():
    """Fresh in-memory SQLite schema, installed as the global engine."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    db_engine.set_engine(engine)
    yield engine
    db_engine.set_engine(None)
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def client():
    return ClientService.create_client(
        ClientCreate(first_name="Ada", last_name="Lovelace", email="ada@example.com")
    )


@pytest.fixture
def portfolio(client):
    return PortfolioService.create_portfolio(PortfolioCreate(name="Core", client_id=client.id))


@pytest.fixture
def make_asset(portfolio):
    """Factory creating a stored asset; defaults to 100 shares bought at 150."""
    def _make(**overrides):
        fields = {
            "name": "Apple Inc.",
            "symbol": "AAPL",
            "asset_type": "STOCK",
            "quantity": Decimal("100"),
            "purchase_price": Decimal("150.00"),
            "portfolio_id": portfolio.id,
        }
        fields.update(overrides)
        return AssetService.create_asset(AssetCreate(**fields))
    return _make
