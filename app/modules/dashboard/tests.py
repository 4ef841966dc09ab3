"""
Tests del módulo de Dashboard

Se usa una fecha fija (miércoles 11/03/2026) para que los períodos sean estables.
"""
from datetime import date
from decimal import Decimal

import pytest

from app.modules.dashboard.schemas import DashboardPeriod
from app.modules.dashboard.service import DashboardService, growth, period_range, previous_range
from app.modules.expenses.models import Expense
from app.modules.sales.models import Sale
from app.modules.schedulings.models import Scheduling

TODAY = date(2026, 3, 11)


@pytest.fixture
def add_scheduling(db_session):
    def _add(service, day, time_="10:00", status="completed"):
        db_session.add(Scheduling(
            scheduled_date=day, scheduled_time=time_, service_id=service.id,
            establishment_id=service.establishment_id, client_name="Ana", status=status,
        ))
        db_session.commit()

    return _add


@pytest.fixture
def agenda(service, add_scheduling):
    add_scheduling(service, date(2026, 3, 11), "10:00", "completed")
    add_scheduling(service, date(2026, 3, 11), "14:00", "pending")
    add_scheduling(service, date(2026, 3, 12), "10:00", "cancelled")
    add_scheduling(service, date(2026, 2, 10), "10:00", "completed")


class TestPeriods:

    def test_ranges(self):
        assert period_range(DashboardPeriod.DAY, TODAY) == (TODAY, TODAY)
        assert period_range(DashboardPeriod.WEEK, TODAY) == (date(2026, 3, 9), date(2026, 3, 15))
        assert period_range(DashboardPeriod.MONTH, TODAY) == (date(2026, 3, 1), date(2026, 3, 31))
        assert period_range(DashboardPeriod.YEAR, TODAY) == (date(2026, 1, 1), date(2026, 12, 31))

    def test_previous_ranges(self):
        assert previous_range(DashboardPeriod.MONTH, TODAY) == (date(2026, 2, 1), date(2026, 2, 28))
        assert previous_range(DashboardPeriod.WEEK, TODAY) == (date(2026, 3, 2), date(2026, 3, 8))
        assert previous_range(DashboardPeriod.DAY, TODAY) == (date(2026, 3, 10), date(2026, 3, 10))

    def test_growth(self):
        assert growth(150, 100) == 50.0
        assert growth(5, 0) == 100.0
        assert growth(0, 0) == 0.0
        assert growth(1, 3) == -66.67


class TestStats:
    """Resumen del período"""

    def test_month(self, db_session, owner, agenda):
        stats = DashboardService(db_session, owner, today=TODAY).stats(DashboardPeriod.MONTH)

        assert stats["establishments"] == 1
        assert stats["services"] == 1
        assert stats["schedulings"] == {"total": 3, "growth": 200.0, "previous": 1}
        assert stats["revenue"] == {"total": 100.0, "growth": 100.0, "previous": 50.0}
        assert stats["average_ticket"] == 50.0

    def test_other_owner_sees_zero(self, db_session, other_owner, agenda):
        stats = DashboardService(db_session, other_owner, today=TODAY).stats(DashboardPeriod.MONTH)
        assert stats["schedulings"]["total"] == 0
        assert stats["average_ticket"] == 0.0

    def test_employee_counts_assigned_services(self, db_session, employee, establishment, make_service, agenda):
        make_service(establishment, name="Escova")
        stats = DashboardService(db_session, employee, today=TODAY).stats(DashboardPeriod.MONTH)
        assert stats["services"] == 1
        assert stats["establishments"] == 1

    def test_endpoint(self, client, owner, auth_headers):
        response = client.get("/dashboard/stats", headers=auth_headers(owner), params={"period": "week"})
        assert response.status_code == 200
        assert response.json()["period"] == "week"

    def test_invalid_period(self, client, owner, auth_headers):
        response = client.get("/dashboard/stats", headers=auth_headers(owner), params={"period": "decade"})
        assert response.status_code == 422


class TestRevenueChart:

    def test_month_groups_by_date(self, db_session, owner, agenda):
        chart = DashboardService(db_session, owner, today=TODAY).revenue_chart(DashboardPeriod.MONTH)
        assert chart == {"labels": ["2026-03-11"], "revenue": [100.0], "count": [2]}

    def test_day_groups_by_hour(self, db_session, owner, agenda):
        chart = DashboardService(db_session, owner, today=TODAY).revenue_chart(DashboardPeriod.DAY)
        assert chart["labels"] == ["2026-03-11 10:00", "2026-03-11 14:00"]
        assert chart["revenue"] == [50.0, 50.0]

    def test_year_groups_by_month(self, db_session, owner, agenda):
        chart = DashboardService(db_session, owner, today=TODAY).revenue_chart(DashboardPeriod.YEAR)
        assert chart["labels"] == ["2026-02", "2026-03"]
        assert chart["revenue"] == [50.0, 100.0]


class TestTopServices:

    def test_ordered_by_schedulings(self, db_session, owner, establishment, make_service, add_scheduling, agenda):
        escova = make_service(establishment, name="Escova", price="30.00")
        add_scheduling(escova, date(2026, 3, 13))

        top = DashboardService(db_session, owner, today=TODAY).top_services(DashboardPeriod.MONTH)

        assert [(t["name"], t["schedulings"]) for t in top] == [("Corte", 2), ("Escova", 1)]
        assert top[0]["revenue"] == 100.0
        assert top[0]["average_price"] == 50.0
        assert top[0]["establishment"] == "Salão Central"

    def test_limit(self, db_session, owner, establishment, make_service, add_scheduling, agenda):
        escova = make_service(establishment, name="Escova", price="30.00")
        add_scheduling(escova, date(2026, 3, 13))
        top = DashboardService(db_session, owner, today=TODAY).top_services(DashboardPeriod.MONTH, limit=1)
        assert len(top) == 1


class TestFinancial:
    """Entradas, salidas y gastos por pagar"""

    @pytest.fixture
    def ledger(self, db_session, establishment, owner):
        db_session.add_all([
            Sale(establishment_id=establishment.id, user_id=owner.id, amount=Decimal("200.00"),
                 payment_method="pix", sale_date=date(2026, 3, 5), status="paid"),
            Sale(establishment_id=establishment.id, user_id=owner.id, amount=Decimal("70.00"),
                 payment_method="pix", sale_date=date(2026, 3, 6), status="pending"),
        ])
        for amount, due, status_, paid_on in (
            ("80.00", date(2026, 3, 2), "paid", date(2026, 3, 2)),
            ("40.00", date(2026, 3, 20), "pending", None),
            ("25.00", date(2026, 3, 1), "pending", None),
            ("10.00", date(2026, 2, 20), "overdue", None),
        ):
            db_session.add(Expense(
                establishment_id=establishment.id, description="Conta", category="Geral",
                amount=Decimal(amount), due_date=due, payment_date=paid_on,
                payment_method="boleto", status=status_,
            ))
        db_session.commit()

    def test_owner_summary(self, db_session, owner, ledger):
        summary = DashboardService(db_session, owner, today=TODAY).financial(DashboardPeriod.MONTH)

        assert summary["income"] == 200.0
        assert summary["expenses"] == 80.0
        assert summary["balance"] == 120.0
        assert summary["pending_expenses_count"] == 1
        assert summary["pending_expenses_amount"] == 40.0
        assert summary["overdue_expenses_count"] == 2
        assert summary["overdue_expenses_amount"] == 35.0

    def test_employee_has_no_expenses(self, db_session, employee, ledger):
        summary = DashboardService(db_session, employee, today=TODAY).financial(DashboardPeriod.MONTH)
        assert summary["income"] == 200.0
        assert summary["expenses"] == 0.0
        assert summary["overdue_expenses_count"] == 0
