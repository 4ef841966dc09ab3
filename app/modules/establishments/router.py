from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.common.pagination import pagination_dependency
from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.establishments.schemas import (
    EstablishmentCreate, EstablishmentUpdate, EstablishmentOut, EstablishmentList
)
from app.modules.establishments.service import EstablishmentService

router = APIRouter(
    prefix="/establishments",
    tags=["Establishments"],
    responses={404: {"description": "Not found"}}
)


@router.get("/", response_model=EstablishmentList)
async def list_establishments(
    pagination: pagination_dependency,
    owner_id: Optional[UUID] = Query(None, description="Filtrar por owner (solo admin)"),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return EstablishmentService(db).list_establishments(current_user, pagination, owner_id)


@router.post("/", response_model=EstablishmentOut, status_code=status.HTTP_201_CREATED)
async def create_establishment(
    establishment_data: EstablishmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """
    Crear establecimiento

    - Owners: sujeto al límite del plan (403 con message, current y limit)
    - Admin: puede indicar **owner_id**
    """
    return EstablishmentService(db).create_establishment(current_user, establishment_data)


@router.get("/{establishment_id}", response_model=EstablishmentOut)
async def get_establishment(
    establishment_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return EstablishmentService(db).get_establishment(current_user, establishment_id)


@router.put("/{establishment_id}", response_model=EstablishmentOut)
async def update_establishment(
    establishment_id: UUID,
    establishment_data: EstablishmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return EstablishmentService(db).update_establishment(current_user, establishment_id, establishment_data)


@router.delete("/{establishment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_establishment(
    establishment_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    EstablishmentService(db).delete_establishment(current_user, establishment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
