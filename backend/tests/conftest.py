"""Pytest fixtures for the billing tests."""

import datetime as dt

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.session import Base

# Ensure all models are loaded for create_all
import app.models  # noqa: F401
from app.models.firm import Client, LawFirm, Matter


@pytest.fixture(scope="function")
def db():
    """Create an in-memory SQLite DB with all tables for tests."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def today():
    return dt.date(2026, 3, 20)


@pytest.fixture
def firm(db):
    f = LawFirm(name="Silva & Souza Advogados")
    db.add(f)
    db.commit()
    return f


@pytest.fixture
def client(db, firm):
    c = Client(law_firm_id=firm.id, name="Maria Oliveira", email="maria@example.com")
    db.add(c)
    db.commit()
    return c


@pytest.fixture
def matter(db, firm, client):
    m = Matter(law_firm_id=firm.id, client_id=client.id, title="Reclamação Trabalhista 123", status="active")
    db.add(m)
    db.commit()
    return m
