"""
Servicio de planes y suscripciones de usuarios.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.common.dates import now_utc
from app.modules.auth.models import User
from app.modules.plans.models import Plan, UserPlan, PlanInterval, UserPlanStatus
from app.modules.plans.schemas import PlanCreate

logger = logging.getLogger(__name__)

FREE_PLAN_NAME = "Gratuito"


def add_months(value: datetime, months: int) -> datetime:
    """Suma meses recortando el día al último del mes destino."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    # Último día del mes destino
    next_month = datetime(year + (month // 12), month % 12 + 1, 1)
    last_day = (next_month - timedelta(days=1)).day
    return value.replace(year=year, month=month, day=min(value.day, last_day))


def period_end(start: datetime, interval: str) -> datetime:
    if interval == PlanInterval.YEARLY.value:
        return add_months(start, 12)
    return add_months(start, 1)


class PlanService:

    def __init__(self, db: Session):
        self.db = db

    # ===== PLANES =====

    def list_plans(self) -> List[Plan]:
        return self.db.query(Plan).filter(Plan.is_active == True).order_by(Plan.price.asc()).all()

    def get_plan(self, plan_id: UUID) -> Plan:
        plan = self.db.get(Plan, plan_id)
        if not plan:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plano não encontrado.")
        return plan

    def create_plan(self, data: PlanCreate) -> Plan:
        plan_data = data.model_dump()
        plan_data["interval"] = data.interval.value
        plan = Plan(**plan_data)
        self.db.add(plan)
        self.db.commit()
        self.db.refresh(plan)
        logger.info(f"Plan creado: {plan.name} ({plan.interval})")
        return plan

    def get_free_plan(self) -> Optional[Plan]:
        return self.db.query(Plan).filter(
            Plan.name == FREE_PLAN_NAME,
            Plan.price == 0,
            Plan.interval == PlanInterval.MONTHLY.value,
        ).first()

    # ===== SUSCRIPCIONES =====

    def get_current_plan(self, user: User) -> Optional[UserPlan]:
        """Último UserPlan activo que no haya vencido."""
        return self.db.query(UserPlan).options(joinedload(UserPlan.plan)).filter(
            UserPlan.user_id == user.id,
            UserPlan.status == UserPlanStatus.ACTIVE.value,
            or_(UserPlan.ends_at.is_(None), UserPlan.ends_at > now_utc()),
        ).order_by(UserPlan.created_at.desc(), UserPlan.starts_at.desc()).first()

    def subscribe(self, user: User, plan_id: UUID) -> UserPlan:
        if self.get_current_plan(user):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Você já possui um plano ativo. Cancele o plano atual antes de assinar um novo."
            )

        plan = self.get_plan(plan_id)
        if not plan.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Este plano não está disponível."
            )

        starts_at = now_utc()
        user_plan = UserPlan(
            user_id=user.id,
            plan_id=plan.id,
            status=UserPlanStatus.ACTIVE.value,
            starts_at=starts_at,
            ends_at=period_end(starts_at, plan.interval),
        )
        self.db.add(user_plan)
        self.db.commit()
        self.db.refresh(user_plan)
        return user_plan

    def cancel(self, user: User) -> UserPlan:
        user_plan = self.get_current_plan(user)
        if not user_plan:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Nenhum plano ativo encontrado.")

        user_plan.status = UserPlanStatus.CANCELLED.value
        user_plan.cancelled_at = now_utc()
        self.db.commit()
        self.db.refresh(user_plan)
        return user_plan

    def activate_plan(self, user_id: UUID, plan: Plan, commit: bool = True) -> UserPlan:
        """
        Activa el plan pagado: cancela el plan vigente y crea uno nuevo
        con vencimiento según el intervalo.
        """
        now = now_utc()
        self.db.query(UserPlan).filter(
            UserPlan.user_id == user_id,
            UserPlan.status == UserPlanStatus.ACTIVE.value,
        ).update(
            {"status": UserPlanStatus.CANCELLED.value, "cancelled_at": now},
            synchronize_session=False
        )

        user_plan = UserPlan(
            user_id=user_id,
            plan_id=plan.id,
            status=UserPlanStatus.ACTIVE.value,
            starts_at=now,
            ends_at=period_end(now, plan.interval),
        )
        self.db.add(user_plan)
        self.db.flush()
        if commit:
            self.db.commit()
            self.db.refresh(user_plan)
        logger.info(f"Plan {plan.name} activado para el usuario {user_id}")
        return user_plan

    def assign_free_plan(self, user: User) -> Optional[UserPlan]:
        """
        Asigna el plan Gratuito (sin vencimiento) a un owner sin plan vigente.
        Reactiva una asignación previa si existe.
        """
        if not user.is_owner or self.get_current_plan(user):
            return None

        free_plan = self.get_free_plan()
        if not free_plan:
            logger.warning("Plan gratuito no encontrado; ejecute scripts/seed_plans.py")
            return None

        user_plan = self.db.query(UserPlan).filter(
            UserPlan.user_id == user.id,
            UserPlan.plan_id == free_plan.id,
        ).first()

        if user_plan:
            user_plan.status = UserPlanStatus.ACTIVE.value
            user_plan.starts_at = now_utc()
            user_plan.ends_at = None
            user_plan.cancelled_at = None
        else:
            user_plan = UserPlan(
                user_id=user.id,
                plan_id=free_plan.id,
                status=UserPlanStatus.ACTIVE.value,
                starts_at=now_utc(),
                ends_at=None,
            )
            self.db.add(user_plan)

        self.db.commit()
        self.db.refresh(user_plan)
        return user_plan
