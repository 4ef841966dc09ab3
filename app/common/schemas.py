"""
Referencias compactas embebidas en las respuestas de varios módulos
"""
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class EstablishmentRef(BaseModel):
    id: UUID
    name: str

    class Config:
        from_attributes = True


class UserRef(BaseModel):
    id: UUID
    name: str
    email: str
    role: str

    class Config:
        from_attributes = True


class ServiceRef(BaseModel):
    id: UUID
    name: str
    price: Decimal
    duration: Optional[int] = None
    establishment_id: UUID
    user_id: Optional[UUID] = None

    class Config:
        from_attributes = True


class ClientRef(BaseModel):
    id: UUID
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None

    class Config:
        from_attributes = True
