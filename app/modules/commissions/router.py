from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.common.pagination import pagination_dependency
from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.commissions.models import CommissionStatus
from app.modules.commissions.schemas import (
    CommissionCreate, CommissionUpdate, CommissionOut, CommissionList, MarkAsPaidRequest
)
from app.modules.commissions.service import CommissionService

router = APIRouter(
    prefix="/commissions",
    tags=["Commissions"],
    responses={404: {"description": "Not found"}}
)


@router.get("/", response_model=CommissionList)
async def list_commissions(
    pagination: pagination_dependency,
    user_id: Optional[UUID] = Query(None),
    sale_id: Optional[UUID] = Query(None),
    date_from: Optional[date] = Query(None, alias="from", description="Fecha de venta desde"),
    date_to: Optional[date] = Query(None, alias="to", description="Fecha de venta hasta"),
    commission_status: Optional[CommissionStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return CommissionService(db).list_commissions(
        current_user, pagination,
        user_id=user_id,
        sale_id=sale_id,
        date_from=date_from,
        date_to=date_to,
        commission_status=commission_status,
    )


@router.post("/", response_model=CommissionOut, status_code=status.HTTP_201_CREATED)
async def create_commission(
    commission_data: CommissionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """El monto se calcula como sale.amount * percentage / 100."""
    return CommissionService(db).create_commission(current_user, commission_data)


@router.get("/{commission_id}", response_model=CommissionOut)
async def get_commission(
    commission_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return CommissionService(db).get_commission(current_user, commission_id)


@router.put("/{commission_id}", response_model=CommissionOut)
async def update_commission(
    commission_id: UUID,
    commission_data: CommissionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return CommissionService(db).update_commission(current_user, commission_id, commission_data)


@router.post("/{commission_id}/mark-as-paid", response_model=CommissionOut)
async def mark_commission_as_paid(
    commission_id: UUID,
    request: Optional[MarkAsPaidRequest] = Body(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    payment_date = request.payment_date if request else None
    return CommissionService(db).mark_as_paid(current_user, commission_id, payment_date)


@router.delete("/{commission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_commission(
    commission_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    CommissionService(db).delete_commission(current_user, commission_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
