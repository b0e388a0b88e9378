"""
Shared test fixtures — in-memory SQLite database and sample builders.
"""

import os
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set DATABASE_URL before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"

from interior_quote import models  # noqa: F401
from interior_quote import schemas
from interior_quote.database import Base


# One in-memory database shared by every connection of the test engine
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


# --- Sample builders ---

def _sample_project_data(**overrides):
    data = {
        "name": "Sharma Residence",
        "client_name": "A. Sharma",
        "site_address": "14 Lake View Road, Pune",
        "contact_info": "+91 98765 43210",
        "project_type": "Apartment",
        "settings": {"tax_percent": 18, "discount_percent": 10},
        "rooms": [
            {"name": "Living Room", "type": "Living"},
            {"name": "Master Bedroom", "type": "Bedroom"},
        ],
    }
    data.update(overrides)
    return schemas.ProjectCreate(**data)


@pytest.fixture
def project(db):
    from interior_quote import project_service
    return project_service.create_project(db, _sample_project_data())
