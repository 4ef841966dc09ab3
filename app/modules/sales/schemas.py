from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from app.common.pagination import PaginatedResponse
from app.common.schemas import EstablishmentRef, ClientRef, ServiceRef, UserRef
from app.modules.sales.models import SalePaymentMethod, SaleStatus


class SaleCreate(BaseModel):
    establishment_id: UUID
    service_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    scheduling_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    amount: Optional[Decimal] = Field(None, ge=0, le=Decimal("999999.99"), max_digits=8, decimal_places=2)
    payment_method: SalePaymentMethod
    sale_date: date
    status: SaleStatus = SaleStatus.PENDING
    notes: Optional[str] = None


class SaleUpdate(BaseModel):
    establishment_id: Optional[UUID] = None
    service_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    scheduling_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    amount: Optional[Decimal] = Field(None, ge=0, le=Decimal("999999.99"), max_digits=8, decimal_places=2)
    payment_method: Optional[SalePaymentMethod] = None
    sale_date: Optional[date] = None
    status: Optional[SaleStatus] = None
    notes: Optional[str] = None


class SchedulingRef(BaseModel):
    id: UUID
    scheduled_date: date
    scheduled_time: str
    status: str

    class Config:
        from_attributes = True


class SaleOut(BaseModel):
    id: UUID
    establishment_id: UUID
    service_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    scheduling_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    amount: Decimal
    payment_method: SalePaymentMethod
    status: SaleStatus
    sale_date: date
    notes: Optional[str] = None
    establishment: Optional[EstablishmentRef] = None
    service: Optional[ServiceRef] = None
    client: Optional[ClientRef] = None
    user: Optional[UserRef] = None
    scheduling: Optional[SchedulingRef] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SaleList(PaginatedResponse):
    data: List[SaleOut]
