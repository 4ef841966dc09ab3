"""
Servicio de gastos. Solo admin y owners; los empleados no tienen acceso.
"""
import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.common.dates import local_today
from app.common.pagination import PaginationParams, paginate
from app.modules.auth.models import User
from app.modules.establishments.access import forbidden, get_establishment_or_404, owned_establishment_ids
from app.modules.expenses.models import Expense, ExpenseStatus
from app.modules.expenses.schemas import ExpenseCreate, ExpenseUpdate, ExpenseMarkAsPaid

logger = logging.getLogger(__name__)


class ExpenseService:

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self):
        return self.db.query(Expense).options(joinedload(Expense.establishment))

    def _get_expense_or_404(self, expense_id: UUID) -> Expense:
        expense = self._base_query().filter(Expense.id == expense_id).first()
        if not expense:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Despesa não encontrada.")
        return expense

    def _ensure_access(self, user: User, expense: Expense, employee_message: str) -> None:
        if user.is_employee:
            raise forbidden(employee_message)
        if user.is_owner and expense.establishment.owner_id != user.id:
            raise forbidden()

    def _ensure_owns(self, user: User, establishment_id: UUID, message: str) -> None:
        establishment = get_establishment_or_404(self.db, establishment_id)
        if user.is_owner and establishment.owner_id != user.id:
            raise forbidden(message)

    def mark_overdue(self, expenses) -> None:
        """Pasa a overdue los gastos pendientes con vencimiento pasado."""
        today = local_today()
        changed = False
        for expense in expenses:
            if expense.is_overdue(today):
                expense.status = ExpenseStatus.OVERDUE.value
                changed = True
        if changed:
            self.db.commit()

    def list_expenses(
        self,
        user: User,
        params: PaginationParams,
        establishment_id: Optional[UUID] = None,
        expense_status: Optional[ExpenseStatus] = None,
        category: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        search: Optional[str] = None,
    ) -> dict:
        if user.is_employee:
            raise forbidden("Funcionários não podem visualizar despesas.")

        # Actualizar vencidos antes de filtrar por estado
        overdue_query = self.db.query(Expense).filter(
            Expense.status == ExpenseStatus.PENDING.value,
            Expense.due_date < local_today(),
        )
        if user.is_owner:
            overdue_query = overdue_query.filter(Expense.establishment_id.in_(owned_establishment_ids(self.db, user)))
        self.mark_overdue(overdue_query.all())

        query = self._base_query()
        if user.is_owner:
            query = query.filter(Expense.establishment_id.in_(owned_establishment_ids(self.db, user)))

        if establishment_id:
            query = query.filter(Expense.establishment_id == establishment_id)
        if expense_status:
            query = query.filter(Expense.status == expense_status.value)
        if category:
            query = query.filter(Expense.category == category)
        if date_from:
            query = query.filter(Expense.due_date >= date_from)
        if date_to:
            query = query.filter(Expense.due_date <= date_to)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Expense.description.ilike(pattern),
                Expense.category.ilike(pattern),
                Expense.notes.ilike(pattern),
            ))

        return paginate(query.order_by(Expense.due_date.desc(), Expense.created_at.desc(), Expense.id.desc()), params)

    def create_expense(self, user: User, data: ExpenseCreate) -> Expense:
        if user.is_employee:
            raise forbidden("Funcionários não podem criar despesas.")
        self._ensure_owns(user, data.establishment_id, "Você não tem permissão para criar despesas neste estabelecimento.")

        expense_data = data.model_dump()
        expense_data["payment_method"] = data.payment_method.value

        if data.status:
            expense_data["status"] = data.status.value
        elif data.payment_date:
            expense_data["status"] = ExpenseStatus.PAID.value
        else:
            expense_data["status"] = ExpenseStatus.PENDING.value

        expense = Expense(**expense_data)
        if expense.is_overdue(local_today()):
            expense.status = ExpenseStatus.OVERDUE.value

        self.db.add(expense)
        self.db.commit()
        return self._get_expense_or_404(expense.id)

    def get_expense(self, user: User, expense_id: UUID) -> Expense:
        expense = self._get_expense_or_404(expense_id)
        self._ensure_access(user, expense, "Funcionários não podem visualizar despesas.")
        return expense

    def update_expense(self, user: User, expense_id: UUID, data: ExpenseUpdate) -> Expense:
        expense = self._get_expense_or_404(expense_id)
        self._ensure_access(user, expense, "Funcionários não podem editar despesas.")

        update_data = data.model_dump(exclude_unset=True)
        for field in ("payment_method", "status"):
            if update_data.get(field) is not None:
                update_data[field] = update_data[field].value

        new_establishment = update_data.get("establishment_id")
        if new_establishment and new_establishment != expense.establishment_id:
            self._ensure_owns(
                user, new_establishment, "Você não tem permissão para mover despesas para este estabelecimento."
            )

        for field, value in update_data.items():
            if value is None and field not in ("payment_date", "notes"):
                continue
            setattr(expense, field, value)

        if expense.is_overdue(local_today()):
            expense.status = ExpenseStatus.OVERDUE.value

        self.db.commit()
        self.db.expire_all()
        return self._get_expense_or_404(expense_id)

    def mark_as_paid(self, user: User, expense_id: UUID, data: Optional[ExpenseMarkAsPaid] = None) -> Expense:
        expense = self._get_expense_or_404(expense_id)
        self._ensure_access(user, expense, "Funcionários não podem marcar despesas como pagas.")

        expense.status = ExpenseStatus.PAID.value
        expense.payment_date = (data.payment_date if data else None) or local_today()
        if data and data.payment_method:
            expense.payment_method = data.payment_method.value

        self.db.commit()
        self.db.expire_all()
        logger.info(f"Expense {expense_id} marked as paid")
        return self._get_expense_or_404(expense_id)

    def delete_expense(self, user: User, expense_id: UUID) -> None:
        expense = self._get_expense_or_404(expense_id)
        self._ensure_access(user, expense, "Funcionários não podem deletar despesas.")
        self.db.delete(expense)
        self.db.commit()
