"""
Tests del módulo de Establecimientos

Alcance por rol y límite de establecimientos del plan.
"""
from app.modules.auth.models import UserRole
from app.modules.establishments.models import Establishment
from app.modules.plans.service import PlanService


class TestEstablishmentScope:
    """Listado y acceso por rol"""

    def test_owner_lists_only_own_ordered_by_name(self, client, owner, other_owner, make_establishment,
                                                  make_service, auth_headers):
        zeta = make_establishment(owner, name="Zeta Beleza")
        alpha = make_establishment(owner, name="Alpha Studio")
        make_establishment(other_owner, name="Outro Salão")
        make_service(zeta)

        response = client.get("/establishments/", headers=auth_headers(owner))

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert [e["name"] for e in body["data"]] == [alpha.name, zeta.name]
        assert body["data"][1]["services_count"] == 1
        assert body["current_page"] == 1
        assert body["from"] == 1 and body["to"] == 2

    def test_admin_lists_all_and_filters_by_owner(self, client, admin, owner, other_owner,
                                                   make_establishment, auth_headers):
        make_establishment(owner, name="A")
        make_establishment(other_owner, name="B")

        all_items = client.get("/establishments/", headers=auth_headers(admin)).json()
        assert all_items["total"] == 2

        filtered = client.get(
            "/establishments/", headers=auth_headers(admin), params={"owner_id": str(other_owner.id)}
        ).json()
        assert [e["name"] for e in filtered["data"]] == ["B"]

    def test_employee_cannot_list(self, client, employee, auth_headers):
        assert client.get("/establishments/", headers=auth_headers(employee)).status_code == 403

    def test_employee_views_where_works(self, client, employee, establishment, other_owner,
                                        make_establishment, auth_headers):
        headers = auth_headers(employee)
        assert client.get(f"/establishments/{establishment.id}", headers=headers).status_code == 200

        foreign = make_establishment(other_owner, name="Outro")
        assert client.get(f"/establishments/{foreign.id}", headers=headers).status_code == 403

    def test_employee_cannot_update(self, client, employee, establishment, auth_headers):
        response = client.put(
            f"/establishments/{establishment.id}", headers=auth_headers(employee), json={"name": "Novo"}
        )
        assert response.status_code == 403

    def test_owner_cannot_touch_foreign(self, client, owner, other_owner, make_establishment, auth_headers):
        foreign = make_establishment(other_owner, name="Outro")
        headers = auth_headers(owner)
        assert client.get(f"/establishments/{foreign.id}", headers=headers).status_code == 403
        assert client.delete(f"/establishments/{foreign.id}", headers=headers).status_code == 403

    def test_not_found(self, client, owner, auth_headers):
        response = client.get("/establishments/00000000-0000-0000-0000-000000000000", headers=auth_headers(owner))
        assert response.status_code == 404


class TestEstablishmentCrud:
    """Creación, edición y borrado"""

    def test_owner_creates_for_self(self, client, owner, other_owner, auth_headers):
        response = client.post("/establishments/", headers=auth_headers(owner), json={
            "name": "Studio Bela",
            "address": "Av. Paulista, 1000",
            "owner_id": str(other_owner.id),
        })
        assert response.status_code == 201
        assert response.json()["owner_id"] == str(owner.id)
        assert response.json()["services_count"] == 0

    def test_admin_creates_for_owner(self, client, admin, owner, auth_headers):
        response = client.post("/establishments/", headers=auth_headers(admin), json={
            "name": "Filial", "owner_id": str(owner.id),
        })
        assert response.status_code == 201
        assert response.json()["owner_id"] == str(owner.id)

    def test_admin_unknown_owner(self, client, admin, auth_headers):
        response = client.post("/establishments/", headers=auth_headers(admin), json={
            "name": "Filial", "owner_id": "00000000-0000-0000-0000-000000000000",
        })
        assert response.status_code == 422

    def test_employee_cannot_create(self, client, employee, auth_headers):
        response = client.post("/establishments/", headers=auth_headers(employee), json={"name": "X"})
        assert response.status_code == 403

    def test_update_and_delete(self, client, db_session, owner, establishment, auth_headers):
        headers = auth_headers(owner)
        updated = client.put(f"/establishments/{establishment.id}", headers=headers, json={"phone": "1133334444"})
        assert updated.status_code == 200
        assert updated.json()["phone"] == "1133334444"
        assert updated.json()["name"] == establishment.name

        establishment_id = establishment.id
        assert client.delete(f"/establishments/{establishment_id}", headers=headers).status_code == 204
        db_session.expire_all()
        assert db_session.get(Establishment, establishment_id) is None

    def test_update_null_name_keeps_current(self, client, owner, establishment, auth_headers):
        response = client.put(f"/establishments/{establishment.id}", headers=auth_headers(owner), json={
            "name": None, "address": "Rua Nova, 10",
        })
        assert response.status_code == 200
        assert response.json()["name"] == "Salão Central"
        assert response.json()["address"] == "Rua Nova, 10"


class TestEstablishmentPlanLimit:
    """Límite de establecimientos del plan"""

    def test_free_plan_allows_one(self, client, db_session, make_user, free_plan, auth_headers):
        user = make_user(UserRole.OWNER)
        PlanService(db_session).assign_free_plan(user)
        headers = auth_headers(user)

        assert client.post("/establishments/", headers=headers, json={"name": "Primeiro"}).status_code == 201

        response = client.post("/establishments/", headers=headers, json={"name": "Segundo"})
        assert response.status_code == 403
        detail = response.json()["detail"]
        assert detail["current"] == 1
        assert detail["limit"] == 1
        assert "limite de estabelecimentos" in detail["message"]

    def test_without_plan_denied(self, client, make_user, auth_headers):
        user = make_user(UserRole.OWNER)
        response = client.post("/establishments/", headers=auth_headers(user), json={"name": "Primeiro"})
        assert response.status_code == 403
        assert response.json()["detail"]["message"] == (
            "Você precisa de um plano ativo para criar estabelecimentos."
        )
        assert response.json()["detail"]["limit"] is None

    def test_admin_ignores_limits(self, client, admin, auth_headers):
        headers = auth_headers(admin)
        for name in ("Um", "Dois", "Três"):
            assert client.post("/establishments/", headers=headers, json={"name": name}).status_code == 201
