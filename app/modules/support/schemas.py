from pydantic import BaseModel, EmailStr, Field


class SupportMessage(BaseModel):
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=10)
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr


class SupportResponse(BaseModel):
    message: str
