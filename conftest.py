"""
Fixtures compartidas por los tests de los módulos.

Usa SQLite en memoria con StaticPool y reemplaza get_db; las tareas de
Celery no se encolan: se registran en ``sent_tasks``.
"""
import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")

from decimal import Decimal

import pytest
from celery.app.task import Task
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database.database import Base, get_db
from app.modules.auth.models import User, UserRole
from app.modules.auth.utils import create_access_token, hash_password
from app.modules.establishments.models import Establishment
from app.modules.plans.models import Plan, PlanInterval
from app.modules.plans.service import PlanService
from app.modules.services.models import Service

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Hash fijo para no pagar bcrypt en cada usuario
DEFAULT_PASSWORD = "password123"
DEFAULT_PASSWORD_HASH = hash_password(DEFAULT_PASSWORD)


# ===== BASE DE DATOS Y CLIENTE =====

@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def sent_tasks(monkeypatch):
    """Tareas de Celery despachadas con .delay: lista de (nombre, kwargs)."""
    calls = []

    def fake_delay(self, *args, **kwargs):
        calls.append((self.name, kwargs))
        return None

    monkeypatch.setattr(Task, "delay", fake_delay)
    return calls


# ===== FACTORIES =====

@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make(role: UserRole = UserRole.OWNER, name: str = None, email: str = None) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"{role.value.title()} {n}",
            email=email or f"{role.value}{n}@example.com",
            password=DEFAULT_PASSWORD_HASH,
            role=role.value,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token, _ = create_access_token({"sub": str(user.id), "role": user.role})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def make_plan(db_session):
    def _make(name: str = "Empresarial", price: str = "199.90", max_establishments=None,
              max_services=None, max_employees=None, interval: PlanInterval = PlanInterval.MONTHLY,
              is_active: bool = True) -> Plan:
        plan = Plan(
            name=name,
            description=f"Plano {name}",
            price=Decimal(price),
            interval=interval.value,
            features=[],
            max_establishments=max_establishments,
            max_services=max_services,
            max_employees=max_employees,
            is_active=is_active,
        )
        db_session.add(plan)
        db_session.commit()
        db_session.refresh(plan)
        return plan

    return _make


@pytest.fixture
def free_plan(make_plan):
    return make_plan(name="Gratuito", price="0", max_establishments=1, max_services=5, max_employees=1)


@pytest.fixture
def unlimited_plan(make_plan):
    return make_plan()


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN, name="Admin")


@pytest.fixture
def owner(make_user, unlimited_plan, db_session):
    """Owner con plan ilimitado."""
    user = make_user(UserRole.OWNER, name="Maria Souza")
    PlanService(db_session).activate_plan(user.id, unlimited_plan)
    return user


@pytest.fixture
def other_owner(make_user, unlimited_plan, db_session):
    user = make_user(UserRole.OWNER, name="Joana Lima")
    PlanService(db_session).activate_plan(user.id, unlimited_plan)
    return user


@pytest.fixture
def make_establishment(db_session):
    def _make(owner: User, name: str = "Salão Central") -> Establishment:
        establishment = Establishment(name=name, address="Rua A, 100", phone="11999990000", owner_id=owner.id)
        db_session.add(establishment)
        db_session.commit()
        db_session.refresh(establishment)
        return establishment

    return _make


@pytest.fixture
def establishment(owner, make_establishment):
    return make_establishment(owner)


@pytest.fixture
def employee(make_user, establishment, db_session):
    """Empleado vinculado a ``establishment``."""
    user = make_user(UserRole.EMPLOYEE, name="Carlos Dias")
    user.work_establishments.append(establishment)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def make_service(db_session):
    def _make(establishment: Establishment, name: str = "Corte", price: str = "50.00",
              duration: int = 30, user: User = None) -> Service:
        service = Service(
            name=name,
            price=Decimal(price),
            duration=duration,
            establishment_id=establishment.id,
            user_id=user.id if user else None,
        )
        db_session.add(service)
        db_session.commit()
        db_session.refresh(service)
        return service

    return _make


@pytest.fixture
def service(establishment, employee, make_service):
    """Servicio de 50.00 asignado a ``employee``."""
    return make_service(establishment, user=employee)
