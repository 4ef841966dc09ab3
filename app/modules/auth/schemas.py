from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional, List
from uuid import UUID
from datetime import datetime
from app.modules.auth.models import UserRole

# User schemas
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: UserRole

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if len(v) < 8:
            raise ValueError('A senha deve ter pelo menos 8 caracteres')
        return v

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class UserOut(BaseModel):
    id: UUID
    name: str
    email: EmailStr
    role: UserRole
    email_verified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class EstablishmentSummary(BaseModel):
    id: UUID
    name: str
    owner_id: UUID

    class Config:
        from_attributes = True

class ServiceSummary(BaseModel):
    id: UUID
    name: str
    user_id: Optional[UUID] = None

    class Config:
        from_attributes = True

class MeOut(UserOut):
    establishments: List[EstablishmentSummary] = []
    services: List[ServiceSummary] = []

# Token schemas
class TokenResponse(BaseModel):
    token: str
    token_type: str = "Bearer"
    expires_at: datetime
    user: UserOut
    message: Optional[str] = None

# Email verification schemas
class EmailVerificationRequest(BaseModel):
    email: EmailStr

class EmailVerificationConfirm(BaseModel):
    token: str
    email: EmailStr

class EmailVerificationResponse(BaseModel):
    message: str
    verified_at: Optional[datetime] = None

# Password reset schemas
class PasswordResetRequest(BaseModel):
    email: EmailStr

class PasswordResetConfirm(BaseModel):
    token: str
    email: EmailStr
    password: str = Field(..., min_length=8)
    password_confirmation: str

    @model_validator(mode='after')
    def passwords_match(self):
        if self.password != self.password_confirmation:
            raise ValueError('A confirmação da senha não confere')
        return self

class MessageResponse(BaseModel):
    message: str
