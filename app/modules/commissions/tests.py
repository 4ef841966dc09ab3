"""
Tests del módulo de Comisiones
"""
from datetime import date
from decimal import Decimal

import pytest

from app.common.dates import local_today
from app.modules.commissions.models import Commission, CommissionStatus
from app.modules.sales.models import Sale


@pytest.fixture
def sale(db_session, establishment, service, employee):
    sale = Sale(
        establishment_id=establishment.id,
        service_id=service.id,
        user_id=employee.id,
        amount=Decimal("200.00"),
        payment_method="pix",
        sale_date=date(2026, 3, 11),
        status="paid",
    )
    db_session.add(sale)
    db_session.commit()
    db_session.refresh(sale)
    return sale


@pytest.fixture
def commission(db_session, sale, employee):
    commission = Commission(
        sale_id=sale.id,
        user_id=employee.id,
        percentage=Decimal("10.00"),
        amount=Decimal("20.00"),
        status=CommissionStatus.PENDING.value,
    )
    db_session.add(commission)
    db_session.commit()
    db_session.refresh(commission)
    return commission


class TestCommissionCrud:
    """Altas y cambios manuales"""

    def test_create_calculates_amount(self, client, owner, employee, sale, auth_headers):
        response = client.post("/commissions/", headers=auth_headers(owner), json={
            "sale_id": str(sale.id),
            "user_id": str(employee.id),
            "percentage": "12.5",
        })

        assert response.status_code == 201
        assert Decimal(response.json()["amount"]) == Decimal("25.00")
        assert response.json()["status"] == "pending"

    def test_percentage_update_recalculates(self, client, owner, commission, auth_headers):
        response = client.put(
            f"/commissions/{commission.id}", headers=auth_headers(owner), json={"percentage": "30"}
        )
        assert Decimal(response.json()["amount"]) == Decimal("60.00")

    def test_percentage_over_100(self, client, owner, employee, sale, auth_headers):
        response = client.post("/commissions/", headers=auth_headers(owner), json={
            "sale_id": str(sale.id), "user_id": str(employee.id), "percentage": "101",
        })
        assert response.status_code == 422

    def test_foreign_owner_cannot_create(self, client, other_owner, employee, sale, auth_headers):
        response = client.post("/commissions/", headers=auth_headers(other_owner), json={
            "sale_id": str(sale.id), "user_id": str(employee.id), "percentage": "5",
        })
        assert response.status_code == 403


class TestMarkAsPaid:

    def test_defaults_to_today(self, client, owner, commission, auth_headers):
        response = client.post(f"/commissions/{commission.id}/mark-as-paid", headers=auth_headers(owner))

        assert response.status_code == 200
        assert response.json()["status"] == "paid"
        assert response.json()["payment_date"] == local_today().isoformat()

    def test_explicit_date(self, client, owner, commission, auth_headers):
        response = client.post(
            f"/commissions/{commission.id}/mark-as-paid",
            headers=auth_headers(owner),
            json={"payment_date": "2026-03-20"},
        )
        assert response.json()["payment_date"] == "2026-03-20"

    def test_employee_forbidden(self, client, employee, commission, auth_headers):
        response = client.post(f"/commissions/{commission.id}/mark-as-paid", headers=auth_headers(employee))
        assert response.status_code == 403
        assert response.json()["detail"] == "Funcionários não podem marcar comissões como pagas."


class TestCommissionList:

    def test_employee_sees_own(self, client, employee, make_user, sale, commission, db_session, auth_headers):
        from app.modules.auth.models import UserRole

        other = make_user(UserRole.EMPLOYEE)
        db_session.add(Commission(
            sale_id=sale.id, user_id=other.id, percentage=Decimal("5"), amount=Decimal("10"),
            status=CommissionStatus.PENDING.value,
        ))
        db_session.commit()

        body = client.get("/commissions/", headers=auth_headers(employee)).json()
        assert [c["id"] for c in body["data"]] == [str(commission.id)]

    def test_filter_by_status_and_sale_date(self, client, owner, commission, auth_headers):
        headers = auth_headers(owner)
        assert client.get("/commissions/", headers=headers, params={"status": "paid"}).json()["total"] == 0
        assert client.get(
            "/commissions/", headers=headers, params={"from": "2026-03-01", "to": "2026-03-31"}
        ).json()["total"] == 1
