from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from uuid import UUID

from app.common.schemas import EstablishmentRef


class EmployeeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    establishment_id: UUID


class EmployeeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8)
    # Reemplaza los vínculos dentro de los establecimientos del owner
    establishment_ids: Optional[List[UUID]] = None


class EmployeeOut(BaseModel):
    """Empleado con estadísticas dentro del alcance del usuario."""
    id: UUID
    name: str
    email: str
    role: str
    created_at: datetime
    establishments: List[EstablishmentRef] = []
    services_count: int = 0
    revenue: float = 0.0
    schedulings_count: int = 0


class EmployeeListResponse(BaseModel):
    data: List[EmployeeOut]
    total: int
