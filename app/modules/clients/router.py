from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.common.pagination import pagination_dependency
from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.clients.schemas import ClientCreate, ClientUpdate, ClientOut, ClientDetail, ClientList
from app.modules.clients.service import ClientService

router = APIRouter(
    prefix="/clients",
    tags=["Clients"],
    responses={404: {"description": "Not found"}}
)


@router.get("/", response_model=ClientList)
async def list_clients(
    pagination: pagination_dependency,
    search: Optional[str] = Query(None, description="Busca por nombre, teléfono, email o CPF"),
    owner_id: Optional[UUID] = Query(None, description="Filtrar por owner (solo admin)"),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return ClientService(db).list_clients(current_user, pagination, search, owner_id)


@router.post("/", response_model=ClientOut, status_code=status.HTTP_201_CREATED)
async def create_client(
    client_data: ClientCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """
    Crear cliente

    - **photo**: acepta `data:image/<ext>;base64,...`, se sube a MinIO
    - **cpf**: se validan los dígitos verificadores
    """
    return ClientService(db).create_client(current_user, client_data)


@router.get("/{client_id}", response_model=ClientDetail)
async def get_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return ClientService(db).get_client(current_user, client_id)


@router.put("/{client_id}", response_model=ClientOut)
async def update_client(
    client_id: UUID,
    client_data: ClientUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return ClientService(db).update_client(current_user, client_id, client_data)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    ClientService(db).delete_client(current_user, client_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
