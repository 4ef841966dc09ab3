from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.plans.limits import PlanLimitService
from app.modules.plans.schemas import (
    PlanCreate, PlanOut, SubscribeRequest, UserPlanOut,
    CurrentPlanResponse, LimitsResponse, CancelResponse
)
from app.modules.plans.service import PlanService

router = APIRouter(
    prefix="/plans",
    tags=["Plans"],
    responses={404: {"description": "Not found"}}
)


@router.get("/", response_model=List[PlanOut])
async def list_plans(db: Session = Depends(get_db)):
    """Planes activos ordenados por precio. Público."""
    return PlanService(db).list_plans()


@router.get("/current", response_model=CurrentPlanResponse)
async def current_plan(
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """Plan vigente del usuario (o null) junto con sus límites."""
    return {
        "user_plan": PlanService(db).get_current_plan(current_user),
        "limits": PlanLimitService(db).get_plan_limits(current_user),
    }


@router.get("/limits", response_model=LimitsResponse)
async def plan_limits(
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    limits = PlanLimitService(db)
    return {
        **limits.get_plan_limits(current_user),
        "can_create_establishment": limits.can_create_establishment(current_user),
        "can_create_service": limits.can_create_service(current_user),
        "can_add_employee": limits.can_add_employee(current_user),
    }


@router.post("/subscribe", response_model=UserPlanOut, status_code=status.HTTP_201_CREATED)
async def subscribe(
    request: SubscribeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """
    Suscribir al usuario a un plan

    - Falla con 400 si ya tiene un plan activo o el plan no está disponible
    - El vencimiento depende del intervalo (mensual o anual)
    """
    return PlanService(db).subscribe(current_user, request.plan_id)


@router.post("/cancel", response_model=CancelResponse)
async def cancel_plan(
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    user_plan = PlanService(db).cancel(current_user)
    return {"message": "Plano cancelado com sucesso.", "user_plan": user_plan}


@router.post("/", response_model=PlanOut, status_code=status.HTTP_201_CREATED)
async def create_plan(
    plan_data: PlanCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.require_admin())
):
    return PlanService(db).create_plan(plan_data)


@router.get("/{plan_id}", response_model=PlanOut)
async def get_plan(plan_id: UUID, db: Session = Depends(get_db)):
    return PlanService(db).get_plan(plan_id)
