"""
Tests del módulo de Ventas y de la sincronización de comisiones
"""
from decimal import Decimal
from uuid import UUID

import pytest

from app.modules.auth.models import UserRole
from app.modules.commissions.manager import calculate_amount
from app.modules.commissions.models import Commission


def _sale_payload(establishment, service=None, **extra):
    payload = {
        "establishment_id": str(establishment.id),
        "payment_method": "pix",
        "sale_date": "2026-03-11",
    }
    if service:
        payload["service_id"] = str(service.id)
    payload.update(extra)
    return payload


def _commissions(db_session, sale_id):
    db_session.expire_all()
    return db_session.query(Commission).filter(Commission.sale_id == UUID(str(sale_id))).order_by(Commission.created_at).all()


class TestSaleCreate:
    """Alta de ventas"""

    def test_amount_and_employee_from_service(self, client, db_session, owner, employee, establishment,
                                              service, auth_headers):
        response = client.post("/sales/", headers=auth_headers(owner), json=_sale_payload(establishment, service))

        assert response.status_code == 201
        body = response.json()
        assert Decimal(body["amount"]) == Decimal("50.00")
        assert body["user_id"] == str(employee.id)

        commissions = _commissions(db_session, body["id"])
        assert len(commissions) == 1
        assert commissions[0].user_id == employee.id
        assert commissions[0].percentage == Decimal("10.00")
        assert commissions[0].amount == Decimal("5.00")

    def test_amount_required_without_service(self, client, owner, establishment, auth_headers):
        response = client.post("/sales/", headers=auth_headers(owner), json=_sale_payload(establishment))
        assert response.status_code == 422
        assert response.json()["detail"] == "O valor da venda é obrigatório."

    def test_seller_defaults_to_current_user(self, client, owner, establishment, auth_headers):
        response = client.post(
            "/sales/", headers=auth_headers(owner), json=_sale_payload(establishment, amount="80.00")
        )
        assert response.json()["user_id"] == str(owner.id)

    def test_cancelled_sale_has_no_commission(self, client, db_session, owner, establishment, service, auth_headers):
        response = client.post(
            "/sales/", headers=auth_headers(owner),
            json=_sale_payload(establishment, service, status="cancelled")
        )
        assert _commissions(db_session, response.json()["id"]) == []

    def test_employee_sale_is_attributed_to_self(self, client, employee, establishment, auth_headers):
        response = client.post(
            "/sales/", headers=auth_headers(employee), json=_sale_payload(establishment, amount="30.00")
        )
        assert response.status_code == 201
        assert response.json()["user_id"] == str(employee.id)

    def test_foreign_establishment(self, client, other_owner, establishment, auth_headers):
        response = client.post(
            "/sales/", headers=auth_headers(other_owner), json=_sale_payload(establishment, amount="30.00")
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Você não tem permissão para criar vendas neste estabelecimento."


class TestCommissionSync:
    """Cambios en la venta se reflejan en sus comisiones"""

    @pytest.fixture
    def sale_id(self, client, owner, establishment, service, auth_headers):
        response = client.post("/sales/", headers=auth_headers(owner), json=_sale_payload(establishment, service))
        return response.json()["id"]

    def test_cancel_and_reopen(self, client, db_session, owner, sale_id, auth_headers):
        headers = auth_headers(owner)

        client.put(f"/sales/{sale_id}", headers=headers, json={"status": "cancelled"})
        assert [c.status for c in _commissions(db_session, sale_id)] == ["cancelled"]

        client.put(f"/sales/{sale_id}", headers=headers, json={"status": "pending"})
        assert [c.status for c in _commissions(db_session, sale_id)] == ["pending"]

    def test_amount_change_recalculates(self, client, db_session, owner, sale_id, auth_headers):
        client.put(f"/sales/{sale_id}", headers=auth_headers(owner), json={"amount": "120.00"})
        assert _commissions(db_session, sale_id)[0].amount == Decimal("12.00")

    def test_service_change_moves_commission(self, client, db_session, owner, establishment, employee,
                                             make_user, make_service, sale_id, auth_headers):
        other = make_user(UserRole.EMPLOYEE, name="Paula Nunes")
        manicure = make_service(establishment, name="Manicure", price="40.00", user=other)

        response = client.put(f"/sales/{sale_id}", headers=auth_headers(owner), json={"service_id": str(manicure.id)})

        assert response.json()["user_id"] == str(other.id)
        by_user = {c.user_id: c for c in _commissions(db_session, sale_id)}
        assert by_user[employee.id].status == "cancelled"
        assert by_user[other.id].status == "pending"
        assert by_user[other.id].amount == Decimal("4.00")


class TestSaleAccess:

    def test_employee_sees_only_own_sales(self, client, owner, employee, establishment, auth_headers):
        client.post("/sales/", headers=auth_headers(owner), json=_sale_payload(establishment, amount="10.00"))
        client.post("/sales/", headers=auth_headers(employee), json=_sale_payload(establishment, amount="20.00"))

        body = client.get("/sales/", headers=auth_headers(employee)).json()
        assert body["total"] == 1
        assert Decimal(body["data"][0]["amount"]) == Decimal("20.00")

    def test_employee_cannot_delete(self, client, employee, establishment, auth_headers):
        created = client.post(
            "/sales/", headers=auth_headers(employee), json=_sale_payload(establishment, amount="20.00")
        ).json()
        response = client.delete(f"/sales/{created['id']}", headers=auth_headers(employee))
        assert response.status_code == 403
        assert response.json()["detail"] == "Funcionários não podem deletar vendas."

    def test_owner_deletes_with_commissions(self, client, db_session, owner, establishment, service, auth_headers):
        created = client.post(
            "/sales/", headers=auth_headers(owner), json=_sale_payload(establishment, service)
        ).json()
        assert client.delete(f"/sales/{created['id']}", headers=auth_headers(owner)).status_code == 204
        assert _commissions(db_session, created["id"]) == []


def test_calculate_amount_rounds_half_up():
    assert calculate_amount(Decimal("33.33"), Decimal("15")) == Decimal("5.00")
    assert calculate_amount("10.05", "50") == Decimal("5.03")
