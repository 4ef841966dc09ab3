"""
Tests del módulo de Funcionários
"""
from datetime import date

import pytest

from app.modules.auth.models import User, UserRole
from app.modules.plans.service import PlanService
from app.modules.schedulings.models import Scheduling


@pytest.fixture
def free_owner(make_user, free_plan, db_session):
    user = make_user(UserRole.OWNER, name="Rita Campos")
    PlanService(db_session).activate_plan(user.id, free_plan)
    return user


def _payload(establishment, email="novo@example.com"):
    return {
        "name": "Bruno Melo",
        "email": email,
        "password": "segredo123",
        "establishment_id": str(establishment.id),
    }


class TestEmployeeCreate:
    """Alta de funcionários"""

    def test_create_links_establishment(self, client, owner, establishment, auth_headers):
        response = client.post("/employees/", headers=auth_headers(owner), json=_payload(establishment))

        assert response.status_code == 201
        body = response.json()
        assert body["role"] == "employee"
        assert [e["id"] for e in body["establishments"]] == [str(establishment.id)]
        assert body["revenue"] == 0.0

    def test_email_taken(self, client, owner, establishment, employee, auth_headers):
        response = client.post(
            "/employees/", headers=auth_headers(owner), json=_payload(establishment, email=employee.email)
        )
        assert response.status_code == 422
        assert response.json()["detail"] == "O email informado já está em uso."

    def test_foreign_establishment(self, client, other_owner, establishment, auth_headers):
        response = client.post("/employees/", headers=auth_headers(other_owner), json=_payload(establishment))
        assert response.status_code == 403
        assert response.json()["detail"] == "Estabelecimento não pertence a você."

    def test_plan_limit(self, client, free_owner, make_establishment, auth_headers):
        salon = make_establishment(free_owner)
        headers = auth_headers(free_owner)

        assert client.post("/employees/", headers=headers, json=_payload(salon, "a@example.com")).status_code == 201

        response = client.post("/employees/", headers=headers, json=_payload(salon, "b@example.com"))
        assert response.status_code == 403
        assert response.json()["detail"]["limit"] == 1
        assert response.json()["detail"]["current"] == 1

    def test_employee_cannot_manage(self, client, employee, establishment, auth_headers):
        response = client.post("/employees/", headers=auth_headers(employee), json=_payload(establishment))
        assert response.status_code == 403


class TestEmployeeList:

    def test_stats_and_ordering(self, client, db_session, owner, establishment, employee, service,
                                make_user, auth_headers):
        for time_, status_ in (("09:00", "completed"), ("11:00", "pending"), ("13:00", "cancelled")):
            db_session.add(Scheduling(
                scheduled_date=date(2026, 3, 11), scheduled_time=time_, service_id=service.id,
                establishment_id=establishment.id, client_name="Ana", status=status_,
            ))
        idle = make_user(UserRole.EMPLOYEE, name="Sem Agenda")
        idle.work_establishments.append(establishment)
        db_session.commit()

        body = client.get("/employees/", headers=auth_headers(owner)).json()

        assert body["total"] == 2
        top = body["data"][0]
        assert top["id"] == str(employee.id)
        assert top["services_count"] == 1
        assert top["schedulings_count"] == 2
        assert top["revenue"] == 100.0

    def test_other_owner_does_not_see(self, client, other_owner, employee, auth_headers):
        body = client.get("/employees/", headers=auth_headers(other_owner)).json()
        assert body["total"] == 0
        assert client.get(f"/employees/{employee.id}", headers=auth_headers(other_owner)).status_code == 404


class TestEmployeeUpdate:

    def test_sync_establishments(self, client, owner, establishment, employee, make_establishment, auth_headers):
        filial = make_establishment(owner, name="Filial")

        response = client.put(
            f"/employees/{employee.id}", headers=auth_headers(owner),
            json={"establishment_ids": [str(filial.id)], "name": "Carlos D."}
        )

        body = response.json()
        assert body["name"] == "Carlos D."
        assert [e["id"] for e in body["establishments"]] == [str(filial.id)]

    def test_cannot_link_foreign_establishment(self, client, owner, other_owner, employee,
                                               make_establishment, auth_headers):
        foreign = make_establishment(other_owner, name="Concorrente")
        response = client.put(
            f"/employees/{employee.id}", headers=auth_headers(owner),
            json={"establishment_ids": [str(foreign.id)]}
        )
        assert response.status_code == 403

    def test_delete(self, client, db_session, owner, employee, auth_headers):
        employee_id = employee.id
        assert client.delete(f"/employees/{employee_id}", headers=auth_headers(owner)).status_code == 204
        db_session.expire_all()
        assert db_session.get(User, employee_id) is None
