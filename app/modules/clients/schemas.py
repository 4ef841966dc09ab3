from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import date, datetime
from uuid import UUID

from app.common.pagination import PaginatedResponse
from app.common.validators import validate_cpf


class ClientBase(BaseModel):
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    cpf: Optional[str] = Field(None, max_length=14)
    birth_date: Optional[date] = None
    address: Optional[str] = None
    anamnesis: Optional[str] = None
    notes: Optional[str] = None
    # data:image/<ext>;base64,... o URL
    photo: Optional[str] = None
    allergies: Optional[List[str]] = None

    @field_validator("cpf")
    @classmethod
    def check_cpf(cls, v):
        if v and not validate_cpf(v):
            raise ValueError("CPF inválido")
        return v

    @field_validator("photo")
    @classmethod
    def check_photo(cls, v):
        # los data URI se suben a MinIO; lo demás se guarda tal cual en photo String(500)
        if v and not v.startswith("data:image") and len(v) > 500:
            raise ValueError("A URL da foto deve ter no máximo 500 caracteres")
        return v

    @field_validator("allergies")
    @classmethod
    def check_allergies(cls, v):
        if v and any(len(item) > 255 for item in v):
            raise ValueError("Cada alergia deve ter no máximo 255 caracteres")
        return v


class ClientCreate(ClientBase):
    name: str = Field(..., min_length=1, max_length=255)


class ClientUpdate(ClientBase):
    name: Optional[str] = Field(None, min_length=1, max_length=255)


class SchedulingSummary(BaseModel):
    id: UUID
    scheduled_date: date
    scheduled_time: str
    status: str
    service_id: UUID

    class Config:
        from_attributes = True


class ClientOut(BaseModel):
    id: UUID
    owner_id: UUID
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    cpf: Optional[str] = None
    birth_date: Optional[date] = None
    address: Optional[str] = None
    anamnesis: Optional[str] = None
    notes: Optional[str] = None
    photo: Optional[str] = None
    photo_url: Optional[str] = None
    allergies: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ClientDetail(ClientOut):
    schedulings: List[SchedulingSummary] = []


class ClientList(PaginatedResponse):
    data: List[ClientOut]
