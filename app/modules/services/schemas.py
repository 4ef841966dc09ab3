from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from app.common.pagination import PaginatedResponse
from app.common.schemas import EstablishmentRef, UserRef, ServiceRef


# ===== SUB-SERVICE SCHEMAS =====

class SubServiceItem(BaseModel):
    """Sub-servicio enviado junto con el servicio."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, le=Decimal("999999.99"), max_digits=8, decimal_places=2)
    duration: Optional[int] = Field(None, ge=0)


class SubServiceCreate(SubServiceItem):
    service_id: UUID


class SubServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, le=Decimal("999999.99"), max_digits=8, decimal_places=2)
    duration: Optional[int] = Field(None, ge=0)
    service_id: Optional[UUID] = None


class SubServiceOut(BaseModel):
    id: UUID
    service_id: UUID
    name: str
    description: Optional[str] = None
    price: Decimal
    duration: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SubServiceDetail(SubServiceOut):
    service: ServiceRef


class SubServiceList(PaginatedResponse):
    data: List[SubServiceDetail]


# ===== SERVICE SCHEMAS =====

class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, le=Decimal("999999.99"), max_digits=8, decimal_places=2)
    duration: Optional[int] = Field(None, ge=0, description="Duración en minutos")
    establishment_id: UUID
    user_id: Optional[UUID] = Field(None, description="Empleado responsable")
    sub_services: Optional[List[SubServiceItem]] = None


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, le=Decimal("999999.99"), max_digits=8, decimal_places=2)
    duration: Optional[int] = Field(None, ge=0)
    establishment_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    sub_services: Optional[List[SubServiceItem]] = None


class ServiceOut(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    price: Decimal
    duration: Optional[int] = None
    establishment_id: UUID
    user_id: Optional[UUID] = None
    establishment: Optional[EstablishmentRef] = None
    user: Optional[UserRef] = None
    sub_services: List[SubServiceOut] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ServiceList(PaginatedResponse):
    data: List[ServiceOut]
