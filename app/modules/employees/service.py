"""
Gestión de empleados por parte de owners y admin
"""
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select, delete, insert
from sqlalchemy.orm import Session, selectinload

from app.modules.auth.models import User, UserRole
from app.modules.auth.utils import hash_password
from app.modules.employees.schemas import EmployeeCreate, EmployeeUpdate
from app.modules.establishments.access import forbidden, get_establishment_or_404, owned_establishment_ids
from app.modules.establishments.models import employee_establishment
from app.modules.plans.limits import PlanLimitService, ensure_allowed
from app.modules.schedulings.models import Scheduling, SchedulingStatus
from app.modules.services.models import Service

logger = logging.getLogger(__name__)


class EmployeeService:

    def __init__(self, db: Session):
        self.db = db

    def _ensure_manager(self, user: User) -> None:
        if not (user.is_owner or user.is_admin):
            raise forbidden()

    def _scope(self, user: User) -> Optional[List[UUID]]:
        """Establecimientos del owner; None para admin (todos)."""
        return None if user.is_admin else owned_establishment_ids(self.db, user)

    def _employees_query(self, user: User):
        query = self.db.query(User).options(selectinload(User.work_establishments)).filter(
            User.role == UserRole.EMPLOYEE.value
        )
        scope = self._scope(user)
        if scope is not None:
            linked = select(employee_establishment.c.user_id).where(
                employee_establishment.c.establishment_id.in_(scope)
            )
            query = query.filter(User.id.in_(linked))
        return query

    def _get_employee_or_404(self, user: User, employee_id: UUID) -> User:
        employee = self._employees_query(user).filter(User.id == employee_id).first()
        if not employee:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Funcionário não encontrado.")
        return employee

    def _stats(self, employee: User, scope: Optional[List[UUID]]) -> dict:
        services_query = self.db.query(func.count(Service.id)).filter(Service.user_id == employee.id)
        schedulings_query = self.db.query(
            func.count(Scheduling.id), func.coalesce(func.sum(Service.price), 0)
        ).join(Service, Scheduling.service_id == Service.id).filter(
            Service.user_id == employee.id,
            Scheduling.status != SchedulingStatus.CANCELLED.value,
        )
        if scope is not None:
            services_query = services_query.filter(Service.establishment_id.in_(scope))
            schedulings_query = schedulings_query.filter(Service.establishment_id.in_(scope))

        schedulings_count, revenue = schedulings_query.one()
        return {
            "services_count": services_query.scalar() or 0,
            "revenue": float(revenue or 0),
            "schedulings_count": schedulings_count or 0,
        }

    def _present(self, employee: User, scope: Optional[List[UUID]]) -> dict:
        establishments = [
            e for e in employee.work_establishments
            if scope is None or e.id in scope
        ]
        return {
            "id": employee.id,
            "name": employee.name,
            "email": employee.email,
            "role": employee.role,
            "created_at": employee.created_at,
            "establishments": establishments,
            **self._stats(employee, scope),
        }

    def list_employees(self, user: User) -> dict:
        """Empleados con estadísticas, ordenados por ingresos."""
        self._ensure_manager(user)
        scope = self._scope(user)
        employees = [self._present(e, scope) for e in self._employees_query(user).all()]
        employees.sort(key=lambda e: e["revenue"], reverse=True)
        return {"data": employees, "total": len(employees)}

    def create_employee(self, user: User, data: EmployeeCreate) -> dict:
        self._ensure_manager(user)

        establishment = get_establishment_or_404(self.db, data.establishment_id)
        if user.is_owner and establishment.owner_id != user.id:
            raise forbidden("Estabelecimento não pertence a você.")

        if self.db.query(User).filter(User.email == data.email).first():
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="O email informado já está em uso."
            )

        if user.is_owner:
            ensure_allowed(PlanLimitService(self.db).can_add_employee(user))

        employee = User(
            name=data.name,
            email=data.email,
            password=hash_password(data.password),
            role=UserRole.EMPLOYEE.value,
        )
        employee.work_establishments.append(establishment)
        self.db.add(employee)
        self.db.commit()
        self.db.refresh(employee)
        logger.info(f"Employee {employee.email} added to establishment {establishment.id}")
        return self._present(employee, self._scope(user))

    def get_employee(self, user: User, employee_id: UUID) -> dict:
        self._ensure_manager(user)
        return self._present(self._get_employee_or_404(user, employee_id), self._scope(user))

    def update_employee(self, user: User, employee_id: UUID, data: EmployeeUpdate) -> dict:
        self._ensure_manager(user)
        employee = self._get_employee_or_404(user, employee_id)
        scope = self._scope(user)

        update_data = data.model_dump(exclude_unset=True, exclude={"establishment_ids"}, exclude_none=True)
        if "email" in update_data:
            taken = self.db.query(User.id).filter(User.email == update_data["email"], User.id != employee.id).first()
            if taken:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail="O email informado já está em uso."
                )
        if "password" in update_data:
            update_data["password"] = hash_password(update_data["password"])

        for field, value in update_data.items():
            setattr(employee, field, value)

        if data.establishment_ids is not None:
            self._sync_establishments(user, employee, data.establishment_ids, scope)

        self.db.commit()
        self.db.expire_all()
        return self._present(self._get_employee_or_404(user, employee_id), scope)

    def _sync_establishments(
        self, user: User, employee: User, establishment_ids: List[UUID], scope: Optional[List[UUID]]
    ) -> None:
        """Sincroniza vínculos solo dentro de los establecimientos que el usuario gestiona."""
        wanted = set(establishment_ids)
        for establishment_id in wanted:
            establishment = get_establishment_or_404(self.db, establishment_id)
            if scope is not None and establishment.id not in scope:
                raise forbidden("Estabelecimento não pertence a você.")

        current = {e.id for e in employee.work_establishments}
        managed = current if scope is None else current & set(scope)

        to_remove = managed - wanted
        to_add = wanted - current

        if to_remove:
            self.db.execute(delete(employee_establishment).where(
                employee_establishment.c.user_id == employee.id,
                employee_establishment.c.establishment_id.in_(to_remove),
            ))
        for establishment_id in to_add:
            self.db.execute(insert(employee_establishment).values(
                user_id=employee.id, establishment_id=establishment_id
            ))

    def delete_employee(self, user: User, employee_id: UUID) -> None:
        """Desvincula y elimina el usuario empleado."""
        self._ensure_manager(user)
        employee = self._get_employee_or_404(user, employee_id)
        employee.work_establishments.clear()
        self.db.delete(employee)
        self.db.commit()
