"""
Fixtures compartidos

Base SQLite en memoria por test, usuarios por rol con sus tokens y
dobles de MercadoPago y S3 inyectados vía dependency_overrides.
"""

import os
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Variables de entorno antes de importar la app
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("MERCADOPAGO_CLIENT_ID", "test-client-id")
os.environ.setdefault("MERCADOPAGO_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("S3_BUCKET", "test-bucket")

from app.main import app  # noqa: E402
from app.config.database import Base, get_db  # noqa: E402
from app.core.auth.security import hash_password, create_access_token  # noqa: E402
from app.shared.database.models import (  # noqa: E402
    Organization, User, Branch, Brand, MotorcycleModel, OrganizationBrand, Motorcycle,
    Client, Supplier
)
from app.shared.services.mercadopago_client import MercadoPagoClient, get_mercadopago_client  # noqa: E402
from app.shared.services.storage import StorageService, get_storage  # noqa: E402

DEFAULT_PASSWORD = "secreta123"


# ===== BASE DE DATOS =====

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


# ===== SERVICIOS EXTERNOS =====

@pytest.fixture
def mp_client():
    client = MagicMock(spec=MercadoPagoClient)
    return client


@pytest.fixture
def storage():
    storage = MagicMock(spec=StorageService)
    storage.upload.side_effect = lambda prefix, name, content, content_type: {
        "key": f"{prefix}/{name}",
        "url": f"https://test-bucket.s3.amazonaws.com/{prefix}/{name}",
        "size": len(content)
    }
    return storage


@pytest.fixture
def client(engine, mp_client, storage):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mercadopago_client] = lambda: mp_client
    app.dependency_overrides[get_storage] = lambda: storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ===== ORGANIZACIÓN Y USUARIOS =====

@pytest.fixture
def organization(db_session):
    org = Organization(name="Motos del Sur", slug="motos-del-sur")
    db_session.add(org)
    db_session.commit()
    db_session.refresh(org)
    return org


@pytest.fixture
def other_organization(db_session):
    org = Organization(name="Otra Concesionaria", slug="otra")
    db_session.add(org)
    db_session.commit()
    db_session.refresh(org)
    return org


@pytest.fixture
def branches(db_session, organization):
    central = Branch(organization_id=organization.id, name="Central", order=0)
    norte = Branch(organization_id=organization.id, name="Norte", order=1)
    db_session.add_all([central, norte])
    db_session.commit()
    db_session.refresh(central)
    db_session.refresh(norte)
    return central, norte


def _make_user(db_session, organization_id, role, email, name):
    user = User(
        organization_id=organization_id,
        email=email,
        name=name,
        password_hash=hash_password(DEFAULT_PASSWORD),
        role=role,
        is_active=True
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session, organization):
    return _make_user(db_session, organization.id, "admin", "admin@motos.com", "Ana Admin")


@pytest.fixture
def cash_manager(db_session, organization):
    return _make_user(db_session, organization.id, "cash-manager", "caja@motos.com", "Carlos Caja")


@pytest.fixture
def seller(db_session, organization):
    return _make_user(db_session, organization.id, "user", "vendedor@motos.com", "Valeria Venta")


@pytest.fixture
def root_user(db_session):
    return _make_user(db_session, None, "root", "root@apex.com", "Root")


def auth_headers(user):
    token = create_access_token(user.id, user.organization_id, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture
def cash_headers(cash_manager):
    return auth_headers(cash_manager)


@pytest.fixture
def seller_headers(seller):
    return auth_headers(seller)


@pytest.fixture
def root_headers(root_user):
    return auth_headers(root_user)


# ===== CATÁLOGO Y STOCK =====

@pytest.fixture
def catalog(db_session, organization):
    """Marca asociada a la organización con un modelo"""
    brand = Brand(name="Honda")
    db_session.add(brand)
    db_session.flush()
    model = MotorcycleModel(brand_id=brand.id, name="CB 190R")
    db_session.add(model)
    db_session.add(OrganizationBrand(organization_id=organization.id, brand_id=brand.id))
    db_session.commit()
    db_session.refresh(brand)
    db_session.refresh(model)
    return brand, model


@pytest.fixture
def supplier(db_session, organization):
    record = Supplier(organization_id=organization.id, legal_name="Honda Argentina SA",
                      commercial_name="Honda AR", tax_id="30-11111111-1")
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


@pytest.fixture
def customer(db_session, organization):
    record = Client(organization_id=organization.id, first_name="Juan", last_name="Pérez",
                    tax_id="20-12345678-9", email="juan@example.com")
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


@pytest.fixture
def make_motorcycle(db_session, organization, branches, catalog):
    brand, model = catalog
    counter = {"n": 0}

    def factory(**overrides):
        counter["n"] += 1
        values = dict(
            organization_id=organization.id,
            brand_id=brand.id,
            model_id=model.id,
            branch_id=branches[0].id,
            year=2024,
            chassis_number=f"CH-{counter['n']:04d}",
            retail_price=Decimal("1000000.00"),
            cost_price=Decimal("700000.00"),
            currency="ARS",
            state="STOCK",
            created_at=datetime.utcnow()
        )
        values.update(overrides)
        motorcycle = Motorcycle(**values)
        db_session.add(motorcycle)
        db_session.commit()
        db_session.refresh(motorcycle)
        return motorcycle

    return factory
