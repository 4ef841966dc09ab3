from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List

from app.common.pagination import PaginatedResponse
from app.modules.auth.models import UserRole
from app.modules.auth.schemas import UserOut


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8)
    role: Optional[UserRole] = None


class UserList(PaginatedResponse):
    data: List[UserOut]
