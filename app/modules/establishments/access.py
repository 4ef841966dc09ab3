"""
Alcance de datos por rol.

- admin: todo
- owner: establecimientos propios
- employee: establecimientos donde trabaja (tabla employee_establishment)
"""
from typing import List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.modules.auth.models import User
from app.modules.establishments.models import Establishment, employee_establishment


def forbidden(message: str = "Não autorizado.") -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)


def owned_establishment_ids(db: Session, user: User) -> List[UUID]:
    return [row[0] for row in db.query(Establishment.id).filter(Establishment.owner_id == user.id).all()]


def work_establishment_ids(db: Session, user: User) -> List[UUID]:
    rows = db.execute(
        select(employee_establishment.c.establishment_id).where(employee_establishment.c.user_id == user.id)
    ).all()
    return [row[0] for row in rows]


def visible_establishment_ids(db: Session, user: User) -> Optional[List[UUID]]:
    """IDs visibles para el usuario; None significa sin restricción (admin)."""
    if user.is_admin:
        return None
    if user.is_owner:
        return owned_establishment_ids(db, user)
    return work_establishment_ids(db, user)


def works_at(db: Session, user_id: UUID, establishment_id: UUID) -> bool:
    row = db.execute(
        select(employee_establishment.c.user_id).where(
            employee_establishment.c.user_id == user_id,
            employee_establishment.c.establishment_id == establishment_id,
        )
    ).first()
    return row is not None


def get_establishment_or_404(db: Session, establishment_id: UUID) -> Establishment:
    establishment = db.get(Establishment, establishment_id)
    if not establishment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Estabelecimento não encontrado.")
    return establishment


def ensure_can_manage(user: User, establishment: Establishment) -> None:
    """Solo admin o el owner del establecimiento."""
    if user.is_admin:
        return
    if user.is_owner and establishment.owner_id == user.id:
        return
    raise forbidden()


def ensure_can_operate(db: Session, user: User, establishment: Establishment) -> None:
    """Admin, owner del establecimiento o empleado que trabaja en él."""
    if user.is_admin:
        return
    if user.is_owner:
        if establishment.owner_id != user.id:
            raise forbidden("Você não tem permissão para este estabelecimento.")
        return
    if not works_at(db, user.id, establishment.id):
        raise forbidden("Você não trabalha neste estabelecimento.")
