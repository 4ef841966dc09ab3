from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.common.pagination import pagination_dependency
from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.sales.models import SalePaymentMethod, SaleStatus
from app.modules.sales.schemas import SaleCreate, SaleUpdate, SaleOut, SaleList
from app.modules.sales.service import SaleService

router = APIRouter(
    prefix="/sales",
    tags=["Sales"],
    responses={404: {"description": "Not found"}}
)


@router.get("/", response_model=SaleList)
async def list_sales(
    pagination: pagination_dependency,
    establishment_id: Optional[UUID] = Query(None),
    user_id: Optional[UUID] = Query(None, description="Solo admin"),
    client_id: Optional[UUID] = Query(None),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    sale_status: Optional[SaleStatus] = Query(None, alias="status"),
    payment_method: Optional[SalePaymentMethod] = Query(None),
    search: Optional[str] = Query(None, description="Cliente, servicio o empleado"),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """
    Listar ventas, más recientes primero

    - Owner: ventas de sus establecimientos
    - Employee: ventas que realizó
    """
    return SaleService(db).list_sales(
        current_user, pagination,
        establishment_id=establishment_id,
        user_id=user_id,
        client_id=client_id,
        date_from=date_from,
        date_to=date_to,
        sale_status=sale_status,
        payment_method=payment_method.value if payment_method else None,
        search=search,
    )


@router.post("/", response_model=SaleOut, status_code=status.HTTP_201_CREATED)
async def create_sale(
    sale_data: SaleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """
    Registrar venta

    - Con **service_id**: el monto por defecto es el precio del servicio
    - Crea la comisión del empleado salvo que la venta esté cancelada
    """
    return SaleService(db).create_sale(current_user, sale_data)


@router.get("/{sale_id}", response_model=SaleOut)
async def get_sale(
    sale_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return SaleService(db).get_sale(current_user, sale_id)


@router.put("/{sale_id}", response_model=SaleOut)
async def update_sale(
    sale_id: UUID,
    sale_data: SaleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return SaleService(db).update_sale(current_user, sale_id, sale_data)


@router.delete("/{sale_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sale(
    sale_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    SaleService(db).delete_sale(current_user, sale_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
