"""
Servicio de establecimientos
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.common.pagination import PaginationParams, paginate
from app.modules.auth.models import User
from app.modules.establishments.access import (
    forbidden, get_establishment_or_404, ensure_can_manage, works_at
)
from app.modules.establishments.models import Establishment
from app.modules.establishments.schemas import EstablishmentCreate, EstablishmentUpdate
from app.modules.plans.limits import PlanLimitService, ensure_allowed
from app.modules.services.models import Service

logger = logging.getLogger(__name__)


class EstablishmentService:

    def __init__(self, db: Session):
        self.db = db

    def _services_count(self, establishment_id: UUID) -> int:
        return self.db.query(func.count(Service.id)).filter(
            Service.establishment_id == establishment_id
        ).scalar() or 0

    def _with_count(self, establishment: Establishment) -> Establishment:
        establishment.services_count = self._services_count(establishment.id)
        return establishment

    def list_establishments(self, user: User, params: PaginationParams, owner_id: Optional[UUID] = None) -> dict:
        """
        Admin ve todos (filtro opcional owner_id), owner solo los propios.
        Los empleados no listan establecimientos.
        """
        if user.is_employee:
            raise forbidden()

        query = self.db.query(Establishment)
        if user.is_owner:
            query = query.filter(Establishment.owner_id == user.id)
        elif owner_id:
            query = query.filter(Establishment.owner_id == owner_id)

        page = paginate(query.order_by(Establishment.name.asc(), Establishment.id.asc()), params)
        page["data"] = [self._with_count(e) for e in page["data"]]
        return page

    def create_establishment(self, user: User, data: EstablishmentCreate) -> Establishment:
        if user.is_employee:
            raise forbidden()

        if user.is_owner:
            ensure_allowed(PlanLimitService(self.db).can_create_establishment(user))
            owner_id = user.id
        else:
            owner_id = data.owner_id or user.id
            if not self.db.get(User, owner_id):
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail="O proprietário informado não existe."
                )

        establishment = Establishment(**data.model_dump(exclude={"owner_id"}), owner_id=owner_id)
        self.db.add(establishment)
        self.db.commit()
        self.db.refresh(establishment)
        logger.info(f"Establishment created: {establishment.name} (owner {owner_id})")
        return self._with_count(establishment)

    def get_establishment(self, user: User, establishment_id: UUID) -> Establishment:
        establishment = get_establishment_or_404(self.db, establishment_id)
        if user.is_employee:
            if not works_at(self.db, user.id, establishment.id):
                raise forbidden()
        else:
            ensure_can_manage(user, establishment)
        return self._with_count(establishment)

    def update_establishment(self, user: User, establishment_id: UUID, data: EstablishmentUpdate) -> Establishment:
        establishment = get_establishment_or_404(self.db, establishment_id)
        ensure_can_manage(user, establishment)

        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field == "name":
                continue
            setattr(establishment, field, value)

        self.db.commit()
        self.db.refresh(establishment)
        return self._with_count(establishment)

    def delete_establishment(self, user: User, establishment_id: UUID) -> None:
        establishment = get_establishment_or_404(self.db, establishment_id)
        ensure_can_manage(user, establishment)
        self.db.delete(establishment)
        self.db.commit()
