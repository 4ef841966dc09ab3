from typing import List, Optional
from pydantic import BaseModel
from datetime import date
from enum import Enum
from uuid import UUID


class DashboardPeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class CountMetric(BaseModel):
    total: int
    growth: float
    previous: int


class AmountMetric(BaseModel):
    total: float
    growth: float
    previous: float


class DashboardStats(BaseModel):
    period: DashboardPeriod
    start_date: date
    end_date: date
    establishments: int
    services: int
    schedulings: CountMetric
    revenue: AmountMetric
    average_ticket: float


class RevenueChart(BaseModel):
    """Series paralelas: labels[i] corresponde a revenue[i] y count[i]."""
    labels: List[str]
    revenue: List[float]
    count: List[int]


class TopService(BaseModel):
    id: UUID
    name: str
    establishment: Optional[str] = None
    schedulings: int
    revenue: float
    average_price: float


class FinancialSummary(BaseModel):
    period: DashboardPeriod
    start_date: date
    end_date: date
    income: float
    expenses: float
    balance: float
    pending_expenses_count: int
    pending_expenses_amount: float
    overdue_expenses_count: int
    overdue_expenses_amount: float
