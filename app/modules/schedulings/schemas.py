from typing import List, Optional
from pydantic import BaseModel, Field, model_validator
from datetime import date, datetime
from uuid import UUID

from app.common.pagination import PaginatedResponse
from app.common.schemas import EstablishmentRef, ServiceRef, ClientRef
from app.modules.schedulings.models import SchedulingStatus

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class SchedulingCreate(BaseModel):
    scheduled_date: date = Field(..., description="YYYY-MM-DD")
    scheduled_time: str = Field(..., pattern=TIME_PATTERN, description="HH:MM")
    service_id: UUID
    establishment_id: UUID
    client_id: Optional[UUID] = None
    client_name: Optional[str] = Field(None, max_length=255)
    status: SchedulingStatus = SchedulingStatus.PENDING

    @model_validator(mode="after")
    def client_required(self):
        if not self.client_id and not self.client_name:
            raise ValueError("Informe client_id ou client_name")
        return self


class SchedulingUpdate(BaseModel):
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    service_id: Optional[UUID] = None
    establishment_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    client_name: Optional[str] = Field(None, max_length=255)
    status: Optional[SchedulingStatus] = None


class SchedulingOut(BaseModel):
    id: UUID
    scheduled_date: date
    scheduled_time: str
    service_id: UUID
    establishment_id: UUID
    client_id: Optional[UUID] = None
    client_name: str
    status: SchedulingStatus
    service: Optional[ServiceRef] = None
    establishment: Optional[EstablishmentRef] = None
    client: Optional[ClientRef] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SchedulingList(PaginatedResponse):
    data: List[SchedulingOut]
