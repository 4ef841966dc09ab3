"""
Tests del módulo de Servicios y Sub-servicios
"""
from decimal import Decimal

import pytest
from fastapi import HTTPException

from app.modules.auth.models import UserRole
from app.modules.plans.service import PlanService
from app.modules.services.models import Service, SubService
from app.modules.services.schemas import ServiceCreate
from app.modules.services.service import ServiceService, sum_prices


class TestServiceCreate:
    """Creación de servicios"""

    def test_price_from_sub_services(self, client, owner, establishment, auth_headers):
        response = client.post("/services/", headers=auth_headers(owner), json={
            "name": "Pacote Noiva",
            "establishment_id": str(establishment.id),
            "sub_services": [
                {"name": "Penteado", "price": "120.00"},
                {"name": "Maquiagem", "price": "80.50"},
            ],
        })

        assert response.status_code == 201
        body = response.json()
        assert float(body["price"]) == 200.50
        assert sorted(s["name"] for s in body["sub_services"]) == ["Maquiagem", "Penteado"]
        assert body["establishment"]["name"] == establishment.name

    def test_explicit_price_wins(self, client, owner, establishment, auth_headers):
        response = client.post("/services/", headers=auth_headers(owner), json={
            "name": "Pacote",
            "price": "99.90",
            "establishment_id": str(establishment.id),
            "sub_services": [{"name": "Escova", "price": "30.00"}],
        })
        assert float(response.json()["price"]) == 99.90

    def test_without_price_and_sub_services(self, client, owner, establishment, auth_headers):
        response = client.post("/services/", headers=auth_headers(owner), json={
            "name": "Sem preço", "establishment_id": str(establishment.id),
        })
        assert response.status_code == 422
        assert response.json()["detail"] == "É necessário fornecer um preço ou criar subserviços."

    def test_employee_cannot_create(self, client, employee, establishment, auth_headers):
        response = client.post("/services/", headers=auth_headers(employee), json={
            "name": "Corte", "price": "40", "establishment_id": str(establishment.id),
        })
        assert response.status_code == 403
        assert response.json()["detail"] == "Não autorizado. Funcionários não podem criar serviços."

    def test_foreign_establishment(self, client, other_owner, establishment, auth_headers):
        response = client.post("/services/", headers=auth_headers(other_owner), json={
            "name": "Corte", "price": "40", "establishment_id": str(establishment.id),
        })
        assert response.status_code == 403

    def test_assigned_employee_must_work_there(self, client, owner, make_user, establishment, auth_headers):
        outsider = make_user(UserRole.EMPLOYEE)
        response = client.post("/services/", headers=auth_headers(owner), json={
            "name": "Corte", "price": "40", "establishment_id": str(establishment.id), "user_id": str(outsider.id),
        })
        assert response.status_code == 422
        assert response.json()["detail"] == "O funcionário selecionado não trabalha neste estabelecimento."

    def test_service_limit(self, db_session, make_user, make_plan, make_establishment):
        plan = make_plan(name="Mini", price="10.00", max_services=1)
        user = make_user(UserRole.OWNER)
        PlanService(db_session).activate_plan(user.id, plan)
        establishment = make_establishment(user)
        service_service = ServiceService(db_session)

        data = ServiceCreate(name="Corte", price=Decimal("40"), establishment_id=establishment.id)
        service_service.create_service(user, data)

        with pytest.raises(HTTPException) as exc_info:
            service_service.create_service(user, data)
        assert exc_info.value.status_code == 403
        assert exc_info.value.detail["limit"] == 1


class TestServiceAccess:
    """Listado y edición por rol"""

    def test_employee_sees_only_assigned(self, client, employee, establishment, service, make_service, auth_headers):
        make_service(establishment, name="Outro")
        response = client.get("/services/", headers=auth_headers(employee))
        assert [s["id"] for s in response.json()["data"]] == [str(service.id)]

    def test_owner_lists_own_establishments(self, client, owner, other_owner, establishment, service,
                                            make_establishment, make_service, auth_headers):
        make_service(make_establishment(other_owner))
        body = client.get("/services/", headers=auth_headers(owner)).json()
        assert body["total"] == 1
        assert body["data"][0]["user"]["id"] == str(service.user_id)

    def test_employee_updates_assigned_service(self, client, employee, service, auth_headers):
        response = client.put(f"/services/{service.id}", headers=auth_headers(employee), json={"duration": 45})
        assert response.status_code == 200
        assert response.json()["duration"] == 45

    def test_employee_cannot_update_unassigned(self, client, employee, establishment, make_service, auth_headers):
        other = make_service(establishment, name="Outro")
        response = client.put(f"/services/{other.id}", headers=auth_headers(employee), json={"duration": 45})
        assert response.status_code == 403

    def test_update_replaces_sub_services_and_recomputes_price(self, client, db_session, owner, service,
                                                               auth_headers):
        db_session.add(SubService(service_id=service.id, name="Antigo", price=Decimal("10")))
        db_session.commit()

        response = client.put(f"/services/{service.id}", headers=auth_headers(owner), json={
            "sub_services": [{"name": "Lavagem", "price": "15"}, {"name": "Hidratação", "price": "45"}],
        })

        assert response.status_code == 200
        body = response.json()
        assert float(body["price"]) == 60.0
        assert sorted(s["name"] for s in body["sub_services"]) == ["Hidratação", "Lavagem"]
        assert db_session.query(SubService).filter(SubService.name == "Antigo").count() == 0

    def test_update_null_required_fields_keeps_current(self, client, owner, establishment, service, auth_headers):
        response = client.put(f"/services/{service.id}", headers=auth_headers(owner), json={
            "name": None, "price": None, "establishment_id": None, "duration": 40,
        })
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Corte"
        assert float(body["price"]) == 50.0
        assert body["duration"] == 40
        assert body["establishment_id"] == str(establishment.id)

    def test_delete_cascades_sub_services(self, client, db_session, owner, service, auth_headers):
        db_session.add(SubService(service_id=service.id, name="Extra", price=Decimal("5")))
        db_session.commit()
        service_id = service.id

        assert client.delete(f"/services/{service_id}", headers=auth_headers(owner)).status_code == 204
        db_session.expire_all()
        assert db_session.get(Service, service_id) is None
        assert db_session.query(SubService).count() == 0


class TestSubServices:
    """CRUD de sub-servicios"""

    def test_crud(self, client, owner, service, auth_headers):
        headers = auth_headers(owner)
        created = client.post("/sub-services/", headers=headers, json={
            "service_id": str(service.id), "name": "Barba", "price": "25.00", "duration": 20,
        })
        assert created.status_code == 201
        assert created.json()["service"]["id"] == str(service.id)
        sub_id = created.json()["id"]

        listing = client.get("/sub-services/", headers=headers, params={"service_id": str(service.id)})
        assert listing.json()["total"] == 1

        updated = client.put(f"/sub-services/{sub_id}", headers=headers, json={"price": "30.00"})
        assert float(updated.json()["price"]) == 30.0
        assert updated.json()["name"] == "Barba"

        assert client.delete(f"/sub-services/{sub_id}", headers=headers).status_code == 204
        assert client.get(f"/sub-services/{sub_id}", headers=headers).status_code == 404

    def test_foreign_owner_forbidden(self, client, other_owner, service, auth_headers):
        response = client.post("/sub-services/", headers=auth_headers(other_owner), json={
            "service_id": str(service.id), "name": "Barba", "price": "25.00",
        })
        assert response.status_code == 403


def test_sum_prices():
    from app.modules.services.schemas import SubServiceItem
    items = [SubServiceItem(name="a", price=Decimal("1.10")), SubServiceItem(name="b", price=Decimal("2.20"))]
    assert sum_prices(items) == Decimal("3.30")
