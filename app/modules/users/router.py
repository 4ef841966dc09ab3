from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.common.pagination import pagination_dependency
from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User, UserRole
from app.modules.auth.schemas import UserCreate, UserOut
from app.modules.users.schemas import UserUpdate, UserList
from app.modules.users.service import UserService

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={404: {"description": "Not found"}}
)

admin_only = AuthDependencies.require_admin()


@router.get("/", response_model=UserList)
async def list_users(
    pagination: pagination_dependency,
    role: Optional[UserRole] = Query(None, description="Filtrar por rol"),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    """Listar usuarios, más recientes primero."""
    return UserService(db).list_users(pagination, role)


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    return UserService(db).create_user(user_data)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: UUID, db: Session = Depends(get_db), current_user: User = Depends(admin_only)):
    return UserService(db).get_user(user_id)


@router.put("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: UUID,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    """
    Actualizar usuario

    - **email**: debe ser único (puede repetir el propio)
    - **password**: se vuelve a hashear
    """
    return UserService(db).update_user(user_id, user_data)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: UUID, db: Session = Depends(get_db), current_user: User = Depends(admin_only)):
    UserService(db).delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
