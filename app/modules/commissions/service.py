"""
Servicio de comisiones
"""
import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, joinedload

from app.common.dates import local_today
from app.common.pagination import PaginationParams, paginate
from app.modules.auth.models import User
from app.modules.commissions.manager import calculate_amount
from app.modules.commissions.models import Commission, CommissionStatus
from app.modules.commissions.schemas import CommissionCreate, CommissionUpdate
from app.modules.establishments.access import forbidden, owned_establishment_ids
from app.modules.sales.models import Sale

logger = logging.getLogger(__name__)


class CommissionService:

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self):
        return self.db.query(Commission).options(
            joinedload(Commission.sale).joinedload(Sale.establishment),
            joinedload(Commission.user),
        )

    def _get_commission_or_404(self, commission_id: UUID) -> Commission:
        commission = self._base_query().filter(Commission.id == commission_id).first()
        if not commission:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comissão não encontrada.")
        return commission

    def _ensure_can_view(self, user: User, commission: Commission) -> None:
        if user.is_owner and commission.sale.establishment.owner_id != user.id:
            raise forbidden()
        if user.is_employee and commission.user_id != user.id:
            raise forbidden()

    def _ensure_can_manage(self, user: User, commission: Commission, employee_message: str) -> None:
        if user.is_employee:
            raise forbidden(employee_message)
        self._ensure_can_view(user, commission)

    def list_commissions(
        self,
        user: User,
        params: PaginationParams,
        user_id: Optional[UUID] = None,
        sale_id: Optional[UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        commission_status: Optional[CommissionStatus] = None,
    ) -> dict:
        query = self._base_query().join(Sale, Commission.sale_id == Sale.id)

        if user.is_owner:
            query = query.filter(Sale.establishment_id.in_(owned_establishment_ids(self.db, user)))
        elif user.is_employee:
            query = query.filter(Commission.user_id == user.id)

        if user_id and not user.is_employee:
            query = query.filter(Commission.user_id == user_id)
        if sale_id:
            query = query.filter(Commission.sale_id == sale_id)
        if date_from:
            query = query.filter(Sale.sale_date >= date_from)
        if date_to:
            query = query.filter(Sale.sale_date <= date_to)
        if commission_status:
            query = query.filter(Commission.status == commission_status.value)

        return paginate(query.order_by(Commission.created_at.desc(), Commission.id.desc()), params)

    def create_commission(self, user: User, data: CommissionCreate) -> Commission:
        if user.is_employee:
            raise forbidden("Funcionários não podem criar comissões.")

        sale = self.db.get(Sale, data.sale_id)
        if not sale:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venda não encontrada.")
        if user.is_owner and sale.establishment.owner_id != user.id:
            raise forbidden("Você não tem permissão para criar comissões para esta venda.")

        if not self.db.get(User, data.user_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado.")

        commission = Commission(
            sale_id=sale.id,
            user_id=data.user_id,
            percentage=data.percentage,
            amount=calculate_amount(sale.amount, data.percentage),
            status=data.status.value,
            payment_date=data.payment_date,
            notes=data.notes,
        )
        self.db.add(commission)
        self.db.commit()
        return self._get_commission_or_404(commission.id)

    def get_commission(self, user: User, commission_id: UUID) -> Commission:
        commission = self._get_commission_or_404(commission_id)
        self._ensure_can_view(user, commission)
        return commission

    def update_commission(self, user: User, commission_id: UUID, data: CommissionUpdate) -> Commission:
        commission = self._get_commission_or_404(commission_id)
        self._ensure_can_manage(user, commission, "Funcionários não podem editar comissões.")

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("status") is not None:
            update_data["status"] = update_data["status"].value

        for field, value in update_data.items():
            if value is None and field in ("user_id", "percentage", "status"):
                continue
            setattr(commission, field, value)

        if update_data.get("percentage") is not None:
            commission.amount = calculate_amount(commission.sale.amount, update_data["percentage"])

        self.db.commit()
        self.db.expire_all()
        return self._get_commission_or_404(commission.id)

    def mark_as_paid(self, user: User, commission_id: UUID, payment_date: Optional[date] = None) -> Commission:
        commission = self._get_commission_or_404(commission_id)
        self._ensure_can_manage(user, commission, "Funcionários não podem marcar comissões como pagas.")

        commission.status = CommissionStatus.PAID.value
        commission.payment_date = payment_date or local_today()
        self.db.commit()
        self.db.expire_all()
        logger.info(f"Commission {commission_id} marked as paid")
        return self._get_commission_or_404(commission_id)

    def delete_commission(self, user: User, commission_id: UUID) -> None:
        commission = self._get_commission_or_404(commission_id)
        self._ensure_can_manage(user, commission, "Funcionários não podem excluir comissões.")
        self.db.delete(commission)
        self.db.commit()
