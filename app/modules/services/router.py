from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.common.pagination import pagination_dependency
from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.services.schemas import (
    ServiceCreate, ServiceUpdate, ServiceOut, ServiceList,
    SubServiceCreate, SubServiceUpdate, SubServiceDetail, SubServiceList
)
from app.modules.services.service import ServiceService

services_router = APIRouter(
    prefix="/services",
    tags=["Services"],
    responses={404: {"description": "Not found"}}
)

sub_services_router = APIRouter(
    prefix="/sub-services",
    tags=["Sub-services"],
    responses={404: {"description": "Not found"}}
)


# ===== SERVICES =====

@services_router.get("/", response_model=ServiceList)
async def list_services(
    pagination: pagination_dependency,
    establishment_id: Optional[UUID] = Query(None),
    user_id: Optional[UUID] = Query(None, description="Filtrar por empleado (solo admin)"),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """
    Listar servicios

    - Admin: todos
    - Owner: servicios de sus establecimientos
    - Employee: servicios asignados a él
    """
    return ServiceService(db).list_services(current_user, pagination, establishment_id, user_id)


@services_router.post("/", response_model=ServiceOut, status_code=status.HTTP_201_CREATED)
async def create_service(
    service_data: ServiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """
    Crear servicio

    - **price**: si se omite, es la suma de los **sub_services**
    - **user_id**: el empleado debe trabajar en el establecimiento
    """
    return ServiceService(db).create_service(current_user, service_data)


@services_router.get("/{service_id}", response_model=ServiceOut)
async def get_service(
    service_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return ServiceService(db).get_service(current_user, service_id)


@services_router.put("/{service_id}", response_model=ServiceOut)
async def update_service(
    service_id: UUID,
    service_data: ServiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return ServiceService(db).update_service(current_user, service_id, service_data)


@services_router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    ServiceService(db).delete_service(current_user, service_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ===== SUB-SERVICES =====

@sub_services_router.get("/", response_model=SubServiceList)
async def list_sub_services(
    pagination: pagination_dependency,
    service_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return ServiceService(db).list_sub_services(current_user, pagination, service_id)


@sub_services_router.post("/", response_model=SubServiceDetail, status_code=status.HTTP_201_CREATED)
async def create_sub_service(
    sub_service_data: SubServiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return ServiceService(db).create_sub_service(current_user, sub_service_data)


@sub_services_router.get("/{sub_service_id}", response_model=SubServiceDetail)
async def get_sub_service(
    sub_service_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return ServiceService(db).get_sub_service(current_user, sub_service_id)


@sub_services_router.put("/{sub_service_id}", response_model=SubServiceDetail)
async def update_sub_service(
    sub_service_id: UUID,
    sub_service_data: SubServiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return ServiceService(db).update_sub_service(current_user, sub_service_id, sub_service_data)


@sub_services_router.delete("/{sub_service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sub_service(
    sub_service_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    ServiceService(db).delete_sub_service(current_user, sub_service_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
