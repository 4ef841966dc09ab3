"""
Tests del módulo de Despesas
"""
from datetime import timedelta
from decimal import Decimal

import pytest

from app.common.dates import local_today
from app.modules.expenses.models import Expense, ExpenseStatus


@pytest.fixture
def make_expense(db_session, establishment):
    def _make(days_until_due=5, status=ExpenseStatus.PENDING, amount="150.00", category="Aluguel"):
        expense = Expense(
            establishment_id=establishment.id,
            description="Conta",
            category=category,
            amount=Decimal(amount),
            due_date=local_today() + timedelta(days=days_until_due),
            payment_method="boleto",
            status=status.value,
        )
        db_session.add(expense)
        db_session.commit()
        db_session.refresh(expense)
        return expense

    return _make


def _payload(establishment, **extra):
    payload = {
        "establishment_id": str(establishment.id),
        "description": "Conta de luz",
        "category": "Energia",
        "amount": "230.45",
        "due_date": (local_today() + timedelta(days=10)).isoformat(),
        "payment_method": "boleto",
    }
    payload.update(extra)
    return payload


class TestExpenseCreate:
    """Estado inicial de la despesa"""

    def test_pending_by_default(self, client, owner, establishment, auth_headers):
        response = client.post("/expenses/", headers=auth_headers(owner), json=_payload(establishment))
        assert response.status_code == 201
        assert response.json()["status"] == "pending"

    def test_paid_when_payment_date_given(self, client, owner, establishment, auth_headers):
        response = client.post(
            "/expenses/", headers=auth_headers(owner),
            json=_payload(establishment, payment_date=local_today().isoformat())
        )
        assert response.json()["status"] == "paid"

    def test_past_due_is_overdue(self, client, owner, establishment, auth_headers):
        yesterday = (local_today() - timedelta(days=1)).isoformat()
        response = client.post("/expenses/", headers=auth_headers(owner), json=_payload(establishment, due_date=yesterday))
        assert response.json()["status"] == "overdue"

    def test_due_today_is_not_overdue(self, client, owner, establishment, auth_headers):
        response = client.post(
            "/expenses/", headers=auth_headers(owner), json=_payload(establishment, due_date=local_today().isoformat())
        )
        assert response.json()["status"] == "pending"

    def test_zero_amount_rejected(self, client, owner, establishment, auth_headers):
        response = client.post("/expenses/", headers=auth_headers(owner), json=_payload(establishment, amount="0"))
        assert response.status_code == 422

    def test_employee_forbidden(self, client, employee, establishment, auth_headers):
        response = client.post("/expenses/", headers=auth_headers(employee), json=_payload(establishment))
        assert response.status_code == 403
        assert response.json()["detail"] == "Funcionários não podem criar despesas."

    def test_foreign_establishment(self, client, other_owner, establishment, auth_headers):
        response = client.post("/expenses/", headers=auth_headers(other_owner), json=_payload(establishment))
        assert response.status_code == 403


class TestExpenseList:

    def test_listing_marks_overdue(self, client, db_session, owner, make_expense, auth_headers):
        late = make_expense(days_until_due=-3)
        make_expense(days_until_due=3)

        body = client.get("/expenses/", headers=auth_headers(owner), params={"status": "overdue"}).json()

        assert [e["id"] for e in body["data"]] == [str(late.id)]
        db_session.expire_all()
        assert db_session.get(Expense, late.id).status == "overdue"

    def test_search_and_category(self, client, owner, make_expense, auth_headers):
        make_expense(category="Aluguel")
        make_expense(category="Produtos")
        headers = auth_headers(owner)

        assert client.get("/expenses/", headers=headers, params={"category": "Produtos"}).json()["total"] == 1
        assert client.get("/expenses/", headers=headers, params={"search": "alug"}).json()["total"] == 1

    def test_employee_cannot_list(self, client, employee, auth_headers):
        response = client.get("/expenses/", headers=auth_headers(employee))
        assert response.status_code == 403


class TestMarkAsPaid:

    def test_mark_as_paid(self, client, owner, make_expense, auth_headers):
        expense = make_expense(days_until_due=-1, status=ExpenseStatus.OVERDUE)
        response = client.post(
            f"/expenses/{expense.id}/mark-as-paid", headers=auth_headers(owner), json={"payment_method": "pix"}
        )

        body = response.json()
        assert body["status"] == "paid"
        assert body["payment_method"] == "pix"
        assert body["payment_date"] == local_today().isoformat()

    def test_update_and_delete(self, client, db_session, owner, make_expense, auth_headers):
        expense = make_expense()
        headers = auth_headers(owner)

        updated = client.put(f"/expenses/{expense.id}", headers=headers, json={"notes": "Parcelado"})
        assert updated.json()["notes"] == "Parcelado"

        expense_id = expense.id
        assert client.delete(f"/expenses/{expense_id}", headers=headers).status_code == 204
        db_session.expire_all()
        assert db_session.get(Expense, expense_id) is None
