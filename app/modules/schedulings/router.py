from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.common.pagination import pagination_dependency
from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.schedulings.schemas import (
    SchedulingCreate, SchedulingUpdate, SchedulingOut, SchedulingList
)
from app.modules.schedulings.service import SchedulingService

router = APIRouter(
    prefix="/schedulings",
    tags=["Schedulings"],
    responses={404: {"description": "Not found"}}
)


@router.get("/", response_model=SchedulingList)
async def list_schedulings(
    pagination: pagination_dependency,
    establishment_id: Optional[UUID] = Query(None),
    service_id: Optional[UUID] = Query(None),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """Agendamientos ordenados por fecha y hora."""
    return SchedulingService(db).list_schedulings(
        current_user, pagination,
        establishment_id=establishment_id,
        service_id=service_id,
        date_from=date_from,
        date_to=date_to,
    )


@router.post("/", response_model=SchedulingOut, status_code=status.HTTP_201_CREATED)
async def create_scheduling(
    scheduling_data: SchedulingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """
    Crear agendamiento

    - **scheduled_time**: HH:MM
    - Rechaza (422) horarios ocupados para el mismo servicio o solapados en el establecimiento
    - Notifica por email al owner del establecimiento
    """
    return SchedulingService(db).create_scheduling(current_user, scheduling_data)


@router.get("/{scheduling_id}", response_model=SchedulingOut)
async def get_scheduling(
    scheduling_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return SchedulingService(db).get_scheduling(current_user, scheduling_id)


@router.put("/{scheduling_id}", response_model=SchedulingOut)
async def update_scheduling(
    scheduling_id: UUID,
    scheduling_data: SchedulingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """Al pasar a **completed** se genera la venta del agendamiento."""
    return SchedulingService(db).update_scheduling(current_user, scheduling_id, scheduling_data)


@router.delete("/{scheduling_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_scheduling(
    scheduling_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    SchedulingService(db).delete_scheduling(current_user, scheduling_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
