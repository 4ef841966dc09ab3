"""
Gestión administrativa de usuarios
"""
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.common.pagination import PaginationParams, paginate
from app.modules.auth.models import User, UserRole
from app.modules.auth.schemas import UserCreate
from app.modules.auth.utils import hash_password
from app.modules.users.schemas import UserUpdate


class UserService:

    def __init__(self, db: Session):
        self.db = db

    def _email_taken(self, email: str, exclude_id: Optional[UUID] = None) -> bool:
        query = self.db.query(User).filter(User.email == email)
        if exclude_id:
            query = query.filter(User.id != exclude_id)
        return self.db.query(query.exists()).scalar()

    def list_users(self, params: PaginationParams, role: Optional[UserRole] = None) -> dict:
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role.value)
        return paginate(query.order_by(User.created_at.desc(), User.id.desc()), params)

    def get_user(self, user_id: UUID) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado.")
        return user

    def create_user(self, data: UserCreate) -> User:
        if self._email_taken(data.email):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="O email informado já está em uso."
            )

        user = User(
            name=data.name,
            email=data.email,
            password=hash_password(data.password),
            role=data.role.value
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update_user(self, user_id: UUID, data: UserUpdate) -> User:
        user = self.get_user(user_id)
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)

        if "email" in update_data and self._email_taken(update_data["email"], exclude_id=user.id):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="O email informado já está em uso."
            )

        if "password" in update_data:
            update_data["password"] = hash_password(update_data["password"])
        if "role" in update_data:
            update_data["role"] = update_data["role"].value

        for field, value in update_data.items():
            setattr(user, field, value)

        self.db.commit()
        self.db.refresh(user)
        return user

    def delete_user(self, user_id: UUID) -> None:
        user = self.get_user(user_id)
        self.db.delete(user)
        self.db.commit()
