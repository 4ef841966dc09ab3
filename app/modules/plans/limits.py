"""
Control de cuotas por plan.

Cada chequeo cuenta las filas actuales del usuario y las compara con el
límite del plan vigente. Devuelve un dict con ``allowed`` y, según el caso,
``message``, ``current``, ``limit`` y ``remaining``.
"""
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.modules.auth.models import User
from app.modules.establishments.models import Establishment, employee_establishment
from app.modules.plans.models import UserPlan
from app.modules.plans.service import PlanService
from app.modules.services.models import Service

NO_PLAN_MESSAGES = {
    "establishments": "Você precisa de um plano ativo para criar estabelecimentos.",
    "services": "Você precisa de um plano ativo para criar serviços.",
    "employees": "Você precisa de um plano ativo para adicionar funcionários.",
}

LIMIT_REACHED_MESSAGES = {
    "establishments": (
        "Você atingiu o limite de estabelecimentos do seu plano ({limit}). "
        "Faça upgrade para criar mais estabelecimentos."
    ),
    "services": (
        "Você atingiu o limite de serviços do seu plano ({limit}). "
        "Faça upgrade para criar mais serviços."
    ),
    "employees": (
        "Você atingiu o limite de funcionários do seu plano ({limit}). "
        "Faça upgrade para adicionar mais funcionários."
    ),
}


class PlanLimitService:

    def __init__(self, db: Session):
        self.db = db

    # ===== CONTADORES =====

    def count_establishments(self, user: User) -> int:
        return self.db.query(func.count(Establishment.id)).filter(
            Establishment.owner_id == user.id
        ).scalar() or 0

    def count_services(self, user: User) -> int:
        return self.db.query(func.count(Service.id)).join(
            Establishment, Service.establishment_id == Establishment.id
        ).filter(Establishment.owner_id == user.id).scalar() or 0

    def count_employees(self, user: User) -> int:
        """Empleados distintos vinculados a los establecimientos del usuario."""
        owned = select(Establishment.id).where(Establishment.owner_id == user.id)
        stmt = select(func.count(func.distinct(employee_establishment.c.user_id))).where(
            employee_establishment.c.establishment_id.in_(owned)
        )
        return self.db.execute(stmt).scalar() or 0

    # ===== CHEQUEOS =====

    def _check(self, user: User, resource: str, limit_attr: str, current: int) -> dict:
        if user.is_admin:
            return {"allowed": True}

        user_plan: Optional[UserPlan] = PlanService(self.db).get_current_plan(user)
        if not user_plan:
            return {"allowed": False, "message": NO_PLAN_MESSAGES[resource]}

        limit = getattr(user_plan.plan, limit_attr)
        if limit is None:
            return {"allowed": True}

        if current >= limit:
            return {
                "allowed": False,
                "message": LIMIT_REACHED_MESSAGES[resource].format(limit=limit),
                "current": current,
                "limit": limit,
            }

        return {
            "allowed": True,
            "current": current,
            "limit": limit,
            "remaining": limit - current,
        }

    def can_create_establishment(self, user: User) -> dict:
        current = 0 if user.is_admin else self.count_establishments(user)
        return self._check(user, "establishments", "max_establishments", current)

    def can_create_service(self, user: User) -> dict:
        current = 0 if user.is_admin else self.count_services(user)
        return self._check(user, "services", "max_services", current)

    def can_add_employee(self, user: User) -> dict:
        current = 0 if user.is_admin else self.count_employees(user)
        return self._check(user, "employees", "max_employees", current)

    def get_plan_limits(self, user: User) -> dict:
        """Resumen de límites y uso actual del usuario."""
        usage = {
            "current_establishments": self.count_establishments(user),
            "current_services": self.count_services(user),
            "current_employees": self.count_employees(user),
        }

        if user.is_admin:
            return {
                "has_plan": True,
                "plan_name": None,
                "max_establishments": None,
                "max_services": None,
                "max_employees": None,
                **usage,
            }

        user_plan = PlanService(self.db).get_current_plan(user)
        if not user_plan:
            return {"has_plan": False, "message": "Você não possui um plano ativo."}

        plan = user_plan.plan
        return {
            "has_plan": True,
            "plan_name": plan.name,
            "max_establishments": plan.max_establishments,
            "max_services": plan.max_services,
            "max_employees": plan.max_employees,
            **usage,
        }


def ensure_allowed(check: dict) -> None:
    """Convierte un chequeo denegado en 403 con message, current y limit."""
    if check.get("allowed"):
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={
            "message": check.get("message"),
            "current": check.get("current"),
            "limit": check.get("limit"),
        }
    )
