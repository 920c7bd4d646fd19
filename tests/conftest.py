"""Pytest fixtures for the ERP API tests."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import app.models  # noqa: F401
from app.db.session import get_session
from app.main import app
from app.models import Article, Client
from app.routes.documents import optional_storage
from app.services.notifications import NotificationService, get_notification_service


@pytest.fixture
def engine():
    """In-memory SQLite database shared by every session of a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def notifier(engine):
    return NotificationService(engine)


@pytest.fixture
def api_client(engine, notifier):
    """TestClient wired to the in-memory database; storage is not configured."""

    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_notification_service] = lambda: notifier
    app.dependency_overrides[optional_storage] = lambda: None

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def make_article(session):
    def _make(reference="ART-001", designation="Article", unit_price="1000", stock_quantity=10):
        article = Article(
            reference=reference,
            designation=designation,
            unit_price=Decimal(str(unit_price)),
            stock_quantity=stock_quantity,
        )
        session.add(article)
        session.commit()
        session.refresh(article)
        return article

    return _make


@pytest.fixture
def make_client(session):
    def _make(name="Client A", phone="770000000", address="Dakar"):
        client = Client(name=name, phone=phone, address=address)
        session.add(client)
        session.commit()
        session.refresh(client)
        return client

    return _make
