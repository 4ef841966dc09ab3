from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.dashboard.schemas import DashboardPeriod, DashboardStats, RevenueChart, TopService, FinancialSummary
from app.modules.dashboard.service import DashboardService

router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"],
)

PeriodQuery = Query(DashboardPeriod.MONTH, description="day, week, month o year")


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    period: DashboardPeriod = PeriodQuery,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """
    Resumen del período

    - **schedulings** y **revenue** incluyen el valor del período anterior y el crecimiento en %
    - **average_ticket**: ingresos / agendamientos no cancelados
    """
    return DashboardService(db, current_user).stats(period)


@router.get("/revenue-chart", response_model=RevenueChart)
async def get_revenue_chart(
    period: DashboardPeriod = PeriodQuery,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return DashboardService(db, current_user).revenue_chart(period)


@router.get("/top-services", response_model=List[TopService])
async def get_top_services(
    period: DashboardPeriod = PeriodQuery,
    limit: int = Query(5, ge=1, le=50, description="Cantidad de servicios"),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """Servicios con más agendamientos en el período."""
    return DashboardService(db, current_user).top_services(period, limit)


@router.get("/financial", response_model=FinancialSummary)
async def get_financial(
    period: DashboardPeriod = PeriodQuery,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return DashboardService(db, current_user).financial(period)
