from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from app.common.pagination import PaginatedResponse
from app.common.schemas import EstablishmentRef
from app.modules.expenses.models import ExpensePaymentMethod, ExpenseStatus


class ExpenseCreate(BaseModel):
    establishment_id: UUID
    description: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., ge=Decimal("0.01"), le=Decimal("999999.99"), max_digits=8, decimal_places=2)
    due_date: date
    payment_date: Optional[date] = None
    payment_method: ExpensePaymentMethod
    status: Optional[ExpenseStatus] = None
    notes: Optional[str] = None


class ExpenseUpdate(BaseModel):
    establishment_id: Optional[UUID] = None
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[Decimal] = Field(None, ge=Decimal("0.01"), le=Decimal("999999.99"), max_digits=8, decimal_places=2)
    due_date: Optional[date] = None
    payment_date: Optional[date] = None
    payment_method: Optional[ExpensePaymentMethod] = None
    status: Optional[ExpenseStatus] = None
    notes: Optional[str] = None


class ExpenseMarkAsPaid(BaseModel):
    payment_date: Optional[date] = None
    payment_method: Optional[ExpensePaymentMethod] = None


class ExpenseOut(BaseModel):
    id: UUID
    establishment_id: UUID
    description: str
    category: str
    amount: Decimal
    due_date: date
    payment_date: Optional[date] = None
    payment_method: ExpensePaymentMethod
    status: ExpenseStatus
    notes: Optional[str] = None
    establishment: Optional[EstablishmentRef] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ExpenseList(PaginatedResponse):
    data: List[ExpenseOut]
