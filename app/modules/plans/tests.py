"""
Tests del módulo de Planes y límites
"""
from datetime import datetime

import pytest

from app.modules.auth.models import UserRole
from app.modules.plans.limits import PlanLimitService
from app.modules.plans.models import Plan, PlanInterval, UserPlan
from app.modules.plans.seed import assign_free_plan_to_owners, default_plans, seed_plans
from app.modules.plans.service import PlanService, add_months


@pytest.fixture
def plain_owner(make_user):
    """Owner sin ningún plan."""
    return make_user(UserRole.OWNER, name="Sem Plano")


class TestPlanCatalog:
    """Catálogo público y alta por admin"""

    def test_lists_active_by_price(self, client, make_plan):
        make_plan(name="Profissional", price="79.90")
        make_plan(name="Básico", price="29.90")
        make_plan(name="Antigo", price="9.90", is_active=False)

        response = client.get("/plans/")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Básico", "Profissional"]

    def test_admin_creates_plan(self, client, admin, auth_headers):
        response = client.post("/plans/", headers=auth_headers(admin), json={
            "name": "Premium", "price": "99.90", "interval": "yearly", "max_services": 20,
        })
        assert response.status_code == 201
        assert response.json()["max_establishments"] is None

    def test_owner_cannot_create_plan(self, client, owner, auth_headers):
        response = client.post("/plans/", headers=auth_headers(owner), json={
            "name": "Premium", "price": "99.90", "interval": "monthly",
        })
        assert response.status_code == 403


class TestSubscription:
    """Suscripción y cancelación"""

    def test_subscribe_yearly(self, client, plain_owner, make_plan, auth_headers):
        plan = make_plan(name="Profissional", interval=PlanInterval.YEARLY)

        response = client.post("/plans/subscribe", headers=auth_headers(plain_owner), json={"plan_id": str(plan.id)})

        assert response.status_code == 201
        body = response.json()
        starts = datetime.fromisoformat(body["starts_at"])
        ends = datetime.fromisoformat(body["ends_at"])
        assert ends.year == starts.year + 1
        assert body["plan"]["name"] == "Profissional"

    def test_already_active(self, client, owner, unlimited_plan, auth_headers):
        response = client.post("/plans/subscribe", headers=auth_headers(owner), json={"plan_id": str(unlimited_plan.id)})
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Você já possui um plano ativo.")

    def test_inactive_plan(self, client, plain_owner, make_plan, auth_headers):
        plan = make_plan(name="Antigo", is_active=False)
        response = client.post("/plans/subscribe", headers=auth_headers(plain_owner), json={"plan_id": str(plan.id)})
        assert response.status_code == 400
        assert response.json()["detail"] == "Este plano não está disponível."

    def test_cancel(self, client, owner, auth_headers):
        headers = auth_headers(owner)

        response = client.post("/plans/cancel", headers=headers)
        assert response.status_code == 200
        assert response.json()["user_plan"]["status"] == "cancelled"

        again = client.post("/plans/cancel", headers=headers)
        assert again.status_code == 404
        assert again.json()["detail"] == "Nenhum plano ativo encontrado."

    def test_activate_replaces_current(self, db_session, owner, make_plan):
        new_plan = make_plan(name="Básico", price="29.90")
        PlanService(db_session).activate_plan(owner.id, new_plan)

        active = db_session.query(UserPlan).filter(UserPlan.user_id == owner.id, UserPlan.status == "active").all()
        assert [up.plan_id for up in active] == [new_plan.id]


class TestLimits:

    def test_current_without_plan(self, client, plain_owner, auth_headers):
        body = client.get("/plans/current", headers=auth_headers(plain_owner)).json()
        assert body["user_plan"] is None
        assert body["limits"]["has_plan"] is False

    def test_limits_with_usage(self, client, db_session, plain_owner, free_plan, make_establishment, auth_headers):
        PlanService(db_session).activate_plan(plain_owner.id, free_plan)
        make_establishment(plain_owner)

        body = client.get("/plans/limits", headers=auth_headers(plain_owner)).json()

        assert body["plan_name"] == "Gratuito"
        assert body["current_establishments"] == 1
        assert body["can_create_establishment"]["allowed"] is False
        assert body["can_create_service"] == {
            "allowed": True, "message": None, "current": 0, "limit": 5, "remaining": 5,
        }

    def test_admin_is_unlimited(self, db_session, admin):
        assert PlanLimitService(db_session).can_add_employee(admin) == {"allowed": True}


class TestSeed:

    def test_seed_is_idempotent(self, db_session):
        assert seed_plans(db_session) == 7
        assert seed_plans(db_session) == 7
        assert db_session.query(Plan).count() == 7

        yearly = db_session.query(Plan).filter(Plan.name == "Profissional", Plan.interval == "yearly").one()
        assert "Economia de 17%" in yearly.features

    def test_free_plan_assignment(self, db_session, plain_owner):
        seed_plans(db_session)

        assert assign_free_plan_to_owners(db_session) == 1
        current = PlanService(db_session).get_current_plan(plain_owner)
        assert current.plan.name == "Gratuito"
        assert current.ends_at is None

        assert assign_free_plan_to_owners(db_session) == 0

    def test_default_plans_has_no_yearly_free(self):
        names = [(p["name"], p["interval"]) for p in default_plans()]
        assert ("Gratuito", "yearly") not in names


def test_add_months_clamps_day():
    assert add_months(datetime(2026, 1, 31), 1) == datetime(2026, 2, 28)
    assert add_months(datetime(2026, 12, 15), 1) == datetime(2027, 1, 15)
    assert add_months(datetime(2024, 2, 29), 12) == datetime(2025, 2, 28)
