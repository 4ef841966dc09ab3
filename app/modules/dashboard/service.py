"""
Indicadores del dashboard.

El alcance depende del rol: admin ve todo, owner sus establecimientos y
employee los establecimientos donde trabaja. Los ingresos se calculan con
el precio del servicio de los agendamientos no cancelados.
"""
import calendar
import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, extract, false, func, or_
from sqlalchemy.orm import Session

from app.common.dates import local_today
from app.modules.auth.models import User
from app.modules.dashboard.schemas import DashboardPeriod
from app.modules.establishments.access import visible_establishment_ids
from app.modules.establishments.models import Establishment
from app.modules.expenses.models import Expense, ExpenseStatus
from app.modules.sales.models import Sale, SaleStatus
from app.modules.schedulings.models import Scheduling, SchedulingStatus
from app.modules.services.models import Service

logger = logging.getLogger(__name__)


# ===== PERÍODOS =====

def period_range(period: DashboardPeriod, today: date) -> Tuple[date, date]:
    """Inicio y fin (inclusive) del período que contiene ``today``. Semana de lunes a domingo."""
    if period == DashboardPeriod.DAY:
        return today, today
    if period == DashboardPeriod.WEEK:
        start = today - timedelta(days=today.weekday())
        return start, start + timedelta(days=6)
    if period == DashboardPeriod.YEAR:
        return date(today.year, 1, 1), date(today.year, 12, 31)
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


def previous_range(period: DashboardPeriod, today: date) -> Tuple[date, date]:
    """Período inmediatamente anterior: termina el día antes del inicio actual."""
    start, _ = period_range(period, today)
    end = start - timedelta(days=1)
    previous_start, _ = period_range(period, end)
    return previous_start, end


def growth(current: float, previous: float) -> float:
    if previous > 0:
        return round((current - previous) / previous * 100, 2)
    return 100.0 if current > 0 else 0.0


class DashboardService:

    def __init__(self, db: Session, user: User, today: Optional[date] = None):
        self.db = db
        self.user = user
        self.today = today or local_today()
        self.establishment_ids: Optional[List[UUID]] = visible_establishment_ids(db, user)

    def _scoped(self, query, column):
        if self.establishment_ids is None:
            return query
        return query.filter(column.in_(self.establishment_ids))

    def _schedulings(self, start: date, end: date, include_cancelled: bool = True):
        query = self.db.query(Scheduling).filter(
            Scheduling.scheduled_date >= start,
            Scheduling.scheduled_date <= end,
        )
        if not include_cancelled:
            query = query.filter(Scheduling.status != SchedulingStatus.CANCELLED.value)
        return self._scoped(query, Scheduling.establishment_id)

    def _revenue(self, start: date, end: date) -> Tuple[float, int]:
        row = self._schedulings(start, end, include_cancelled=False).join(
            Service, Scheduling.service_id == Service.id
        ).with_entities(
            func.coalesce(func.sum(Service.price), 0),
            func.count(Scheduling.id),
        ).first()
        return float(row[0] or 0), int(row[1] or 0)

    # ===== STATS =====

    def stats(self, period: DashboardPeriod) -> dict:
        start, end = period_range(period, self.today)
        previous_start, previous_end = previous_range(period, self.today)

        establishments = self._scoped(self.db.query(Establishment), Establishment.id).count()

        services_query = self.db.query(Service)
        if self.user.is_employee:
            services_query = services_query.filter(Service.user_id == self.user.id)
        else:
            services_query = self._scoped(services_query, Service.establishment_id)
        services = services_query.count()

        total_schedulings = self._schedulings(start, end).count()
        previous_schedulings = self._schedulings(previous_start, previous_end).count()

        revenue, billable = self._revenue(start, end)
        previous_revenue, _ = self._revenue(previous_start, previous_end)

        logger.info(
            f"Dashboard stats usuario={self.user.id} period={period.value} "
            f"{start}..{end} schedulings={total_schedulings} revenue={revenue}"
        )

        return {
            "period": period,
            "start_date": start,
            "end_date": end,
            "establishments": establishments,
            "services": services,
            "schedulings": {
                "total": total_schedulings,
                "growth": growth(total_schedulings, previous_schedulings),
                "previous": previous_schedulings,
            },
            "revenue": {
                "total": revenue,
                "growth": growth(revenue, previous_revenue),
                "previous": previous_revenue,
            },
            "average_ticket": round(revenue / billable, 2) if billable else 0.0,
        }

    # ===== GRÁFICO =====

    def revenue_chart(self, period: DashboardPeriod) -> dict:
        """
        Ingresos agrupados por hora (day), por fecha (week/month) o por mes (year).
        """
        start, end = period_range(period, self.today)
        base = self._schedulings(start, end, include_cancelled=False).join(
            Service, Scheduling.service_id == Service.id
        )
        revenue = func.coalesce(func.sum(Service.price), 0)
        count = func.count(Scheduling.id)

        if period == DashboardPeriod.DAY:
            hour = func.substr(Scheduling.scheduled_time, 1, 2)
            rows = base.with_entities(Scheduling.scheduled_date, hour, revenue, count).group_by(
                Scheduling.scheduled_date, hour
            ).order_by(Scheduling.scheduled_date, hour).all()
            series = [(f"{day.isoformat()} {hh}:00", total, n) for day, hh, total, n in rows]
        elif period == DashboardPeriod.YEAR:
            year = extract("year", Scheduling.scheduled_date)
            month = extract("month", Scheduling.scheduled_date)
            rows = base.with_entities(year, month, revenue, count).group_by(year, month).order_by(year, month).all()
            series = [(f"{int(yy):04d}-{int(mm):02d}", total, n) for yy, mm, total, n in rows]
        else:
            rows = base.with_entities(Scheduling.scheduled_date, revenue, count).group_by(
                Scheduling.scheduled_date
            ).order_by(Scheduling.scheduled_date).all()
            series = [(day.isoformat(), total, n) for day, total, n in rows]

        return {
            "labels": [label for label, _, _ in series],
            "revenue": [float(total or 0) for _, total, _ in series],
            "count": [int(n) for _, _, n in series],
        }

    # ===== TOP SERVICIOS =====

    def top_services(self, period: DashboardPeriod, limit: int = 5) -> List[dict]:
        start, end = period_range(period, self.today)
        schedulings_count = func.count(Scheduling.id).label("schedulings_count")
        rows = self._schedulings(start, end, include_cancelled=False).join(
            Service, Scheduling.service_id == Service.id
        ).join(
            Establishment, Service.establishment_id == Establishment.id
        ).with_entities(
            Service.id,
            Service.name,
            Establishment.name,
            schedulings_count,
            func.coalesce(func.sum(Service.price), 0),
            func.coalesce(func.avg(Service.price), 0),
        ).group_by(
            Service.id, Service.name, Establishment.name
        ).order_by(schedulings_count.desc(), Service.name).limit(limit).all()

        return [
            {
                "id": row[0],
                "name": row[1],
                "establishment": row[2],
                "schedulings": int(row[3]),
                "revenue": float(row[4] or 0),
                "average_price": round(float(row[5] or 0), 2),
            }
            for row in rows
        ]

    # ===== FINANCIERO =====

    def financial(self, period: DashboardPeriod) -> dict:
        """Entradas (ventas pagadas), salidas (gastos pagados) y gastos por pagar."""
        start, end = period_range(period, self.today)

        income = self._scoped(self.db.query(Sale), Sale.establishment_id).filter(
            Sale.status == SaleStatus.PAID.value,
            Sale.sale_date >= start,
            Sale.sale_date <= end,
        ).with_entities(func.coalesce(func.sum(Sale.amount), 0)).scalar()

        # Los gastos no son visibles para empleados
        expenses_base = self._scoped(self.db.query(Expense), Expense.establishment_id)
        if self.user.is_employee:
            expenses_base = expenses_base.filter(false())

        expenses = expenses_base.filter(
            Expense.status == ExpenseStatus.PAID.value,
            Expense.payment_date >= start,
            Expense.payment_date <= end,
        ).with_entities(func.coalesce(func.sum(Expense.amount), 0)).scalar()

        pending = expenses_base.filter(
            Expense.status == ExpenseStatus.PENDING.value,
            Expense.due_date >= self.today,
            Expense.due_date <= end,
        ).with_entities(func.count(Expense.id), func.coalesce(func.sum(Expense.amount), 0)).first()

        overdue = expenses_base.filter(
            or_(
                Expense.status == ExpenseStatus.OVERDUE.value,
                and_(Expense.status == ExpenseStatus.PENDING.value, Expense.due_date < self.today),
            )
        ).with_entities(func.count(Expense.id), func.coalesce(func.sum(Expense.amount), 0)).first()

        income = float(income or 0)
        expenses = float(expenses or 0)
        return {
            "period": period,
            "start_date": start,
            "end_date": end,
            "income": income,
            "expenses": expenses,
            "balance": round(income - expenses, 2),
            "pending_expenses_count": int(pending[0] or 0),
            "pending_expenses_amount": float(pending[1] or 0),
            "overdue_expenses_count": int(overdue[0] or 0),
            "overdue_expenses_amount": float(overdue[1] or 0),
        }
