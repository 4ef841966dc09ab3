from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from app.common.pagination import PaginatedResponse
from app.common.schemas import UserRef
from app.modules.commissions.models import CommissionStatus


class CommissionCreate(BaseModel):
    sale_id: UUID
    user_id: UUID
    percentage: Decimal = Field(..., ge=0, le=100, max_digits=5, decimal_places=2)
    payment_date: Optional[date] = None
    status: CommissionStatus = CommissionStatus.PENDING
    notes: Optional[str] = None


class CommissionUpdate(BaseModel):
    user_id: Optional[UUID] = None
    percentage: Optional[Decimal] = Field(None, ge=0, le=100, max_digits=5, decimal_places=2)
    payment_date: Optional[date] = None
    status: Optional[CommissionStatus] = None
    notes: Optional[str] = None


class MarkAsPaidRequest(BaseModel):
    payment_date: Optional[date] = Field(None, description="Por defecto, hoy")


class SaleSummary(BaseModel):
    id: UUID
    establishment_id: UUID
    amount: Decimal
    sale_date: date
    status: str

    class Config:
        from_attributes = True


class CommissionOut(BaseModel):
    id: UUID
    sale_id: UUID
    user_id: UUID
    percentage: Decimal
    amount: Decimal
    status: CommissionStatus
    payment_date: Optional[date] = None
    notes: Optional[str] = None
    sale: Optional[SaleSummary] = None
    user: Optional[UserRef] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CommissionList(PaginatedResponse):
    data: List[CommissionOut]
