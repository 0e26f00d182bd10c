"""Pytest configuration and shared fixtures for api-service tests.

Provides database and HTTP client fixtures used by all test modules in
this directory.
"""

import gc
import os
from typing import Generator

# Set DATABASE_URL before any app imports (storage.py requires it at import time)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session


@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing.

    Each test gets a fresh database. Tables are created from SQLModel metadata.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # Register and create all shared tables (Evaluation, Resin)
    import shared.models  # noqa: F401
    from sqlmodel import SQLModel

    SQLModel.metadata.create_all(engine)

    try:
        yield engine
    finally:
        engine.dispose()
        gc.collect()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a database session for testing.

    Automatically rolls back changes after each test.
    """
    session = Session(db_engine)
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def test_client(db_session) -> Generator[TestClient, None, None]:
    """Create a FastAPI test client with the DB dependency overridden."""
    from api_service.dependencies import get_db
    from api_service.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def resin_payload() -> dict:
    """A premium catalog resin as posted to POST /resins."""
    return {
        "name": "Filtek Z350 XT",
        "manufacturer": "3M ESPE",
        "type": "Nanoparticulada",
        "opacity": "Translucido a opaco",
        "resistance": "Alta",
        "polishing": "Excelente",
        "aesthetics": "Premium",
        "price_range": "Premium",
        "indications": ["Classe III", "Classe IV"],
        "description": "Resina nanoparticulada universal.",
    }


@pytest.fixture
def stratification_protocol() -> dict:
    """Stratification protocol payload with two layers."""
    return {
        "layers": [
            {
                "order": 1,
                "name": "Dentina",
                "resin_brand": "3M - Filtek Z350 XT",
                "shade": "A2B",
                "thickness": "0.5mm",
                "purpose": "Corpo",
                "technique": "Incremental",
            },
            {
                "order": 2,
                "name": "Esmalte",
                "resin_brand": "3M - Filtek Z350 XT",
                "shade": "WE",
                "thickness": "0.3mm",
                "purpose": "Translucidez",
                "technique": "Espatula",
            },
        ],
        "alternative": {
            "resin": "Filtek Z350 XT",
            "shade": "A2",
            "technique": "Monocromatica",
            "tradeoff": "Menor naturalidade",
        },
        "checklist": ["Isolamento absoluto", "Condicionamento acido"],
        "confidence": "alta",
    }
