"""
Servicios y sub-servicios de los establecimientos
"""
import logging
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload, joinedload

from app.common.pagination import PaginationParams, paginate
from app.modules.auth.models import User
from app.modules.establishments.access import (
    forbidden, get_establishment_or_404, owned_establishment_ids, works_at
)
from app.modules.establishments.models import Establishment
from app.modules.plans.limits import PlanLimitService, ensure_allowed
from app.modules.services.models import Service, SubService
from app.modules.services.schemas import (
    ServiceCreate, ServiceUpdate, SubServiceItem, SubServiceCreate, SubServiceUpdate
)

logger = logging.getLogger(__name__)


def sum_prices(items: List[SubServiceItem]) -> Decimal:
    return sum((item.price for item in items), Decimal("0"))


def ensure_can_edit_service(user: User, service: Service) -> None:
    """Admin, owner del establecimiento o el empleado asignado."""
    if user.is_admin:
        return
    if user.is_owner and service.establishment.owner_id == user.id:
        return
    if user.is_employee and service.user_id == user.id:
        return
    raise forbidden()


class ServiceService:

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self):
        return self.db.query(Service).options(
            joinedload(Service.establishment),
            joinedload(Service.user),
            selectinload(Service.sub_services),
        )

    def get_service_or_404(self, service_id: UUID) -> Service:
        service = self._base_query().filter(Service.id == service_id).first()
        if not service:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Serviço não encontrado.")
        return service

    def _ensure_owns_establishment(self, user: User, establishment: Establishment) -> None:
        if not user.is_admin and establishment.owner_id != user.id:
            raise forbidden("Não autorizado. Estabelecimento não pertence a você.")

    def _validate_employee(self, user: User, employee_id: Optional[UUID], establishment_id: UUID) -> None:
        if employee_id is None or user.is_admin:
            return
        if not works_at(self.db, employee_id, establishment_id):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="O funcionário selecionado não trabalha neste estabelecimento."
            )

    def _replace_sub_services(self, service: Service, items: List[SubServiceItem]) -> None:
        service.sub_services = [SubService(**item.model_dump()) for item in items]

    # ===== SERVICES =====

    def list_services(
        self,
        user: User,
        params: PaginationParams,
        establishment_id: Optional[UUID] = None,
        user_id: Optional[UUID] = None,
    ) -> dict:
        query = self._base_query()

        if user.is_owner:
            query = query.filter(Service.establishment_id.in_(owned_establishment_ids(self.db, user)))
        elif user.is_employee:
            query = query.filter(Service.user_id == user.id)
        elif user_id:
            query = query.filter(Service.user_id == user_id)

        if establishment_id:
            query = query.filter(Service.establishment_id == establishment_id)

        return paginate(query.order_by(Service.created_at.desc(), Service.id.desc()), params)

    def create_service(self, user: User, data: ServiceCreate) -> Service:
        if user.is_employee:
            raise forbidden("Não autorizado. Funcionários não podem criar serviços.")

        establishment = get_establishment_or_404(self.db, data.establishment_id)
        self._ensure_owns_establishment(user, establishment)

        if user.is_owner:
            ensure_allowed(PlanLimitService(self.db).can_create_service(user))

        sub_services = data.sub_services or []
        price = data.price
        if not price:
            if not sub_services:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail="É necessário fornecer um preço ou criar subserviços."
                )
            price = sum_prices(sub_services)

        self._validate_employee(user, data.user_id, establishment.id)

        service = Service(
            **data.model_dump(exclude={"sub_services", "price"}),
            price=price,
        )
        self._replace_sub_services(service, sub_services)
        self.db.add(service)
        self.db.commit()
        logger.info(f"Service created: {service.name} in establishment {establishment.id}")
        return self.get_service_or_404(service.id)

    def get_service(self, user: User, service_id: UUID) -> Service:
        service = self.get_service_or_404(service_id)
        ensure_can_edit_service(user, service)
        return service

    def update_service(self, user: User, service_id: UUID, data: ServiceUpdate) -> Service:
        service = self.get_service_or_404(service_id)
        ensure_can_edit_service(user, service)

        update_data = data.model_dump(exclude_unset=True, exclude={"sub_services"})

        if update_data.get("establishment_id") and update_data["establishment_id"] != service.establishment_id:
            if user.is_employee:
                raise forbidden()
            establishment = get_establishment_or_404(self.db, update_data["establishment_id"])
            self._ensure_owns_establishment(user, establishment)

        target_establishment = update_data.get("establishment_id") or service.establishment_id
        if "user_id" in update_data:
            self._validate_employee(user, update_data["user_id"], target_establishment)

        if data.sub_services is not None:
            self._replace_sub_services(service, data.sub_services)
            if update_data.get("price") is None and data.sub_services:
                update_data["price"] = sum_prices(data.sub_services)

        for field, value in update_data.items():
            if value is None and field in ("name", "price", "establishment_id"):
                continue
            setattr(service, field, value)

        self.db.commit()
        self.db.expire_all()
        return self.get_service_or_404(service.id)

    def delete_service(self, user: User, service_id: UUID) -> None:
        service = self.get_service_or_404(service_id)
        ensure_can_edit_service(user, service)
        self.db.delete(service)
        self.db.commit()

    # ===== SUB-SERVICES =====

    def _sub_query(self):
        return self.db.query(SubService).options(joinedload(SubService.service))

    def _get_sub_service_or_404(self, sub_service_id: UUID) -> SubService:
        sub_service = self._sub_query().filter(SubService.id == sub_service_id).first()
        if not sub_service:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subserviço não encontrado.")
        return sub_service

    def list_sub_services(self, user: User, params: PaginationParams, service_id: Optional[UUID] = None) -> dict:
        query = self._sub_query().join(Service, SubService.service_id == Service.id)

        if user.is_owner:
            query = query.filter(Service.establishment_id.in_(owned_establishment_ids(self.db, user)))
        elif user.is_employee:
            query = query.filter(Service.user_id == user.id)

        if service_id:
            query = query.filter(SubService.service_id == service_id)

        return paginate(query.order_by(SubService.created_at.desc(), SubService.id.desc()), params)

    def create_sub_service(self, user: User, data: SubServiceCreate) -> SubService:
        service = self.get_service_or_404(data.service_id)
        ensure_can_edit_service(user, service)

        sub_service = SubService(**data.model_dump())
        self.db.add(sub_service)
        self.db.commit()
        return self._get_sub_service_or_404(sub_service.id)

    def get_sub_service(self, user: User, sub_service_id: UUID) -> SubService:
        sub_service = self._get_sub_service_or_404(sub_service_id)
        ensure_can_edit_service(user, sub_service.service)
        return sub_service

    def update_sub_service(self, user: User, sub_service_id: UUID, data: SubServiceUpdate) -> SubService:
        sub_service = self._get_sub_service_or_404(sub_service_id)
        ensure_can_edit_service(user, sub_service.service)

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("service_id") and update_data["service_id"] != sub_service.service_id:
            ensure_can_edit_service(user, self.get_service_or_404(update_data["service_id"]))

        for field, value in update_data.items():
            if value is None and field in ("name", "price", "service_id"):
                continue
            setattr(sub_service, field, value)

        self.db.commit()
        self.db.expire_all()
        return self._get_sub_service_or_404(sub_service.id)

    def delete_sub_service(self, user: User, sub_service_id: UUID) -> None:
        sub_service = self._get_sub_service_or_404(sub_service_id)
        ensure_can_edit_service(user, sub_service.service)
        self.db.delete(sub_service)
        self.db.commit()
