from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from app.modules.plans.models import PlanInterval, UserPlanStatus


# ===== PLAN SCHEMAS =====

class PlanBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Nombre del plan")
    description: Optional[str] = Field(None, description="Descripción del plan")
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Precio por ciclo")
    interval: PlanInterval = Field(..., description="Ciclo de cobro")
    features: List[str] = Field(default_factory=list)
    max_establishments: Optional[int] = Field(None, ge=0, description="null = ilimitado")
    max_services: Optional[int] = Field(None, ge=0, description="null = ilimitado")
    max_employees: Optional[int] = Field(None, ge=0, description="null = ilimitado")
    is_popular: bool = False
    is_active: bool = True


class PlanCreate(PlanBase):
    pass


class PlanOut(PlanBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ===== USER PLAN SCHEMAS =====

class SubscribeRequest(BaseModel):
    plan_id: UUID


class UserPlanOut(BaseModel):
    id: UUID
    user_id: UUID
    plan_id: UUID
    status: UserPlanStatus
    starts_at: datetime
    ends_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    plan: PlanOut

    class Config:
        from_attributes = True


class PlanLimits(BaseModel):
    """Límites del plan vigente y uso actual."""
    has_plan: bool
    message: Optional[str] = None
    plan_name: Optional[str] = None
    max_establishments: Optional[int] = None
    max_services: Optional[int] = None
    max_employees: Optional[int] = None
    current_establishments: Optional[int] = None
    current_services: Optional[int] = None
    current_employees: Optional[int] = None


class LimitCheck(BaseModel):
    allowed: bool
    message: Optional[str] = None
    current: Optional[int] = None
    limit: Optional[int] = None
    remaining: Optional[int] = None


class CurrentPlanResponse(BaseModel):
    user_plan: Optional[UserPlanOut] = None
    limits: PlanLimits


class LimitsResponse(PlanLimits):
    can_create_establishment: LimitCheck
    can_create_service: LimitCheck
    can_add_employee: LimitCheck


class CancelResponse(BaseModel):
    message: str
    user_plan: UserPlanOut
