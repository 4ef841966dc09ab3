from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.common.pagination import pagination_dependency
from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.expenses.models import ExpenseStatus
from app.modules.expenses.schemas import (
    ExpenseCreate, ExpenseUpdate, ExpenseMarkAsPaid, ExpenseOut, ExpenseList
)
from app.modules.expenses.service import ExpenseService

router = APIRouter(
    prefix="/expenses",
    tags=["Expenses"],
    responses={404: {"description": "Not found"}}
)


@router.get("/", response_model=ExpenseList)
async def list_expenses(
    pagination: pagination_dependency,
    establishment_id: Optional[UUID] = Query(None),
    expense_status: Optional[ExpenseStatus] = Query(None, alias="status"),
    category: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None, alias="from", description="Vencimiento desde"),
    date_to: Optional[date] = Query(None, alias="to", description="Vencimiento hasta"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """Los gastos pendientes ya vencidos se marcan como overdue antes de listar."""
    return ExpenseService(db).list_expenses(
        current_user, pagination,
        establishment_id=establishment_id,
        expense_status=expense_status,
        category=category,
        date_from=date_from,
        date_to=date_to,
        search=search,
    )


@router.post("/", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_data: ExpenseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return ExpenseService(db).create_expense(current_user, expense_data)


@router.get("/{expense_id}", response_model=ExpenseOut)
async def get_expense(
    expense_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return ExpenseService(db).get_expense(current_user, expense_id)


@router.put("/{expense_id}", response_model=ExpenseOut)
async def update_expense(
    expense_id: UUID,
    expense_data: ExpenseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return ExpenseService(db).update_expense(current_user, expense_id, expense_data)


@router.post("/{expense_id}/mark-as-paid", response_model=ExpenseOut)
async def mark_expense_as_paid(
    expense_id: UUID,
    request: Optional[ExpenseMarkAsPaid] = Body(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return ExpenseService(db).mark_as_paid(current_user, expense_id, request)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    ExpenseService(db).delete_expense(current_user, expense_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
