"""
Shared test fixtures — SQLite test database, test client, template builders.
"""

import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set DATABASE_URL before importing app modules
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

from budget_engine.database import Base, get_db
from budget_engine.engine import create_calculation_context
from budget_engine.main import app
from budget_engine.schemas import CompanySettings, TemplateView


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


# --- Template / context builders ---

def make_template(categories, strategy=None, is_active=True):
    """TemplateView from plain category dicts."""
    return TemplateView.model_validate({
        "id": "tpl-1",
        "name": "Test template",
        "is_active": is_active,
        "calculation_rules": {"strategy": strategy} if strategy else {},
        "categories": categories,
    })


def hours_category(category_id="cat-labor", name="Labor"):
    """One calculated field: total = quantidade_horas * valor_por_hora."""
    return {
        "id": category_id,
        "name": name,
        "repeatable": True,
        "fields": [
            {
                "id": "f-total",
                "label": "total",
                "type": "calculated",
                "calculation": {
                    "formula": "quantidade_horas * valor_por_hora",
                    "depends_on": ["quantidade_horas", "valor_por_hora"],
                },
            },
        ],
    }


def amount_category(category_id, name, required=False):
    """A single numeric 'valor' field."""
    return {
        "id": category_id,
        "name": name,
        "repeatable": True,
        "fields": [
            {"id": "f-valor", "label": "valor", "type": "number", "required": required},
        ],
    }


def make_context(**overrides):
    return create_calculation_context("company-1", CompanySettings(**overrides))


@pytest.fixture
def context():
    """Context built purely from configured defaults."""
    return make_context()


@pytest.fixture
def company_id(db):
    """A stored company with explicit rates."""
    from budget_engine import models
    company = models.Company(name="Acme Obras", settings={
        "currency": "BRL",
        "tax_rate": 0.18,
        "iss_rate": 0.05,
        "profit_margin": 0.30,
    })
    db.add(company)
    db.commit()
    return company.id
