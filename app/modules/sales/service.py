"""
Servicio de ventas

Cada alta o cambio de una venta dispara la gestión de comisiones
(CommissionManager) dentro de la misma transacción.
"""
import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.common.pagination import PaginationParams, paginate
from app.modules.auth.models import User
from app.modules.clients.models import Client
from app.modules.commissions.manager import CommissionManager, SaleSnapshot
from app.modules.establishments.access import (
    forbidden, get_establishment_or_404, owned_establishment_ids, works_at
)
from app.modules.sales.models import Sale, SaleStatus
from app.modules.sales.schemas import SaleCreate, SaleUpdate
from app.modules.services.models import Service

logger = logging.getLogger(__name__)


class SaleService:

    def __init__(self, db: Session):
        self.db = db
        self.commissions = CommissionManager(db)

    def _base_query(self):
        return self.db.query(Sale).options(
            joinedload(Sale.establishment),
            joinedload(Sale.service),
            joinedload(Sale.client),
            joinedload(Sale.user),
            joinedload(Sale.scheduling),
        )

    def _get_sale_or_404(self, sale_id: UUID) -> Sale:
        sale = self._base_query().filter(Sale.id == sale_id).first()
        if not sale:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venda não encontrada.")
        return sale

    def _get_service(self, service_id: UUID) -> Service:
        service = self.db.get(Service, service_id)
        if not service:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Serviço não encontrado.")
        return service

    def _ensure_can_write_in(self, user: User, establishment_id: UUID, message: str) -> None:
        establishment = get_establishment_or_404(self.db, establishment_id)
        if user.is_owner and establishment.owner_id != user.id:
            raise forbidden(message)
        if user.is_employee and not works_at(self.db, user.id, establishment.id):
            raise forbidden(message)

    def _ensure_can_access(self, user: User, sale: Sale) -> None:
        if user.is_owner and sale.establishment.owner_id != user.id:
            raise forbidden()
        if user.is_employee and sale.user_id != user.id:
            raise forbidden()

    def list_sales(
        self,
        user: User,
        params: PaginationParams,
        establishment_id: Optional[UUID] = None,
        user_id: Optional[UUID] = None,
        client_id: Optional[UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        sale_status: Optional[SaleStatus] = None,
        payment_method: Optional[str] = None,
        search: Optional[str] = None,
    ) -> dict:
        query = self._base_query()

        if user.is_owner:
            query = query.filter(Sale.establishment_id.in_(owned_establishment_ids(self.db, user)))
        elif user.is_employee:
            query = query.filter(Sale.user_id == user.id)
        elif user_id:
            query = query.filter(Sale.user_id == user_id)

        if establishment_id:
            query = query.filter(Sale.establishment_id == establishment_id)
        if client_id:
            query = query.filter(Sale.client_id == client_id)
        if date_from:
            query = query.filter(Sale.sale_date >= date_from)
        if date_to:
            query = query.filter(Sale.sale_date <= date_to)
        if sale_status:
            query = query.filter(Sale.status == sale_status.value)
        if payment_method:
            query = query.filter(Sale.payment_method == payment_method)

        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Sale.client.has(or_(
                    Client.name.ilike(pattern),
                    Client.phone.ilike(pattern),
                    Client.email.ilike(pattern),
                )),
                Sale.service.has(Service.name.ilike(pattern)),
                Sale.user.has(User.name.ilike(pattern)),
            ))

        return paginate(query.order_by(Sale.sale_date.desc(), Sale.created_at.desc(), Sale.id.desc()), params)

    def create_sale(self, user: User, data: SaleCreate) -> Sale:
        self._ensure_can_write_in(
            user, data.establishment_id, "Você não tem permissão para criar vendas neste estabelecimento."
        )

        sale_data = data.model_dump()
        sale_data["payment_method"] = data.payment_method.value
        sale_data["status"] = data.status.value

        if user.is_employee:
            sale_data["user_id"] = user.id

        if data.service_id:
            service = self._get_service(data.service_id)
            if sale_data["amount"] is None:
                sale_data["amount"] = service.price
            if not sale_data["user_id"] and service.user_id:
                sale_data["user_id"] = service.user_id

        if sale_data["amount"] is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="O valor da venda é obrigatório."
            )

        if not sale_data["user_id"]:
            sale_data["user_id"] = user.id

        try:
            sale = Sale(**sale_data)
            self.db.add(sale)
            self.db.flush()

            if sale.status != SaleStatus.CANCELLED.value:
                self.commissions.create_for_sale(sale)

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating sale: {e}")
            raise

        return self._get_sale_or_404(sale.id)

    def get_sale(self, user: User, sale_id: UUID) -> Sale:
        sale = self._get_sale_or_404(sale_id)
        self._ensure_can_access(user, sale)
        return sale

    def update_sale(self, user: User, sale_id: UUID, data: SaleUpdate) -> Sale:
        sale = self._get_sale_or_404(sale_id)
        self._ensure_can_access(user, sale)

        update_data = data.model_dump(exclude_unset=True)
        for field in ("payment_method", "status"):
            if update_data.get(field) is not None:
                update_data[field] = update_data[field].value

        new_establishment = update_data.get("establishment_id")
        if new_establishment and new_establishment != sale.establishment_id:
            self._ensure_can_write_in(
                user, new_establishment, "Você não tem permissão para mover vendas para este estabelecimento."
            )

        previous = SaleSnapshot.of(sale)

        new_service = update_data.get("service_id")
        if new_service and new_service != previous.service_id:
            service = self._get_service(new_service)
            if service.user_id:
                update_data["user_id"] = service.user_id
            if update_data.get("amount") is None:
                update_data["amount"] = service.price

        if user.is_employee:
            update_data.pop("user_id", None)

        for field, value in update_data.items():
            if value is None and field in ("establishment_id", "amount", "payment_method", "sale_date", "status"):
                continue
            setattr(sale, field, value)

        try:
            self.db.flush()
            self.commissions.sync_for_sale(sale, previous)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating sale {sale_id}: {e}")
            raise

        self.db.expire_all()
        return self._get_sale_or_404(sale.id)

    def delete_sale(self, user: User, sale_id: UUID) -> None:
        sale = self._get_sale_or_404(sale_id)
        if user.is_employee:
            raise forbidden("Funcionários não podem deletar vendas.")
        self._ensure_can_access(user, sale)
        self.db.delete(sale)
        self.db.commit()
