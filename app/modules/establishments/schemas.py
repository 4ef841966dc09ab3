from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime
from uuid import UUID

from app.common.pagination import PaginatedResponse


class EstablishmentBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    description: Optional[str] = None


class EstablishmentCreate(EstablishmentBase):
    # Solo lo usa el admin; los owners siempre son dueños de lo que crean
    owner_id: Optional[UUID] = None


class EstablishmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    description: Optional[str] = None


class EstablishmentOut(EstablishmentBase):
    id: UUID
    owner_id: UUID
    services_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class EstablishmentList(PaginatedResponse):
    data: list[EstablishmentOut]
