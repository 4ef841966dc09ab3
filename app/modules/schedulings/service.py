"""
Servicio de agendamientos

- Validación de horario: conflicto exacto por servicio y solapamiento de
  una hora en el mismo establecimiento (o del mismo empleado).
- Notificaciones por email al owner del establecimiento.
- Al completar un agendamiento se genera la venta y su comisión.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, joinedload

from app.common.pagination import PaginationParams, paginate
from app.modules.auth.models import User
from app.modules.clients.models import Client
from app.modules.commissions.manager import CommissionManager
from app.modules.email.tasks import send_scheduling_confirmation_task, send_status_change_task
from app.modules.establishments.access import (
    ensure_can_operate, get_establishment_or_404, visible_establishment_ids
)
from app.modules.establishments.models import Establishment
from app.modules.sales.models import Sale, SalePaymentMethod, SaleStatus
from app.modules.schedulings.models import Scheduling, SchedulingStatus
from app.modules.schedulings.schemas import SchedulingCreate, SchedulingUpdate
from app.modules.services.models import Service

logger = logging.getLogger(__name__)

SLOT_DURATION = timedelta(hours=1)
AUTO_SALE_NOTE = "Venda criada automaticamente ao concluir agendamento."


def _unprocessable(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=message)


def slot_start(scheduled_date: date, scheduled_time: str) -> datetime:
    return datetime.combine(scheduled_date, datetime.strptime(scheduled_time[:5], "%H:%M").time())


class SchedulingService:

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self):
        return self.db.query(Scheduling).options(
            joinedload(Scheduling.service),
            joinedload(Scheduling.establishment),
            joinedload(Scheduling.client),
        )

    def _get_scheduling_or_404(self, scheduling_id: UUID) -> Scheduling:
        scheduling = self._base_query().filter(Scheduling.id == scheduling_id).first()
        if not scheduling:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agendamento não encontrado.")
        return scheduling

    def _get_service_in(self, service_id: UUID, establishment_id: UUID) -> Service:
        service = self.db.get(Service, service_id)
        if not service:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Serviço não encontrado.")
        if service.establishment_id != establishment_id:
            raise _unprocessable("O serviço selecionado não pertence ao estabelecimento informado.")
        return service

    def _resolve_client(self, client_id: Optional[UUID], establishment: Establishment) -> Optional[Client]:
        """El cliente solo se vincula si pertenece al owner del establecimiento."""
        if not client_id:
            return None
        client = self.db.get(Client, client_id)
        if client and client.owner_id == establishment.owner_id:
            return client
        return None

    # ===== VALIDACIÓN DE HORARIO =====

    def validate_slot(
        self,
        scheduled_date: date,
        scheduled_time: str,
        service: Service,
        establishment_id: UUID,
        ignore_id: Optional[UUID] = None,
    ) -> None:
        query = self.db.query(Scheduling).filter(
            Scheduling.scheduled_date == scheduled_date,
            Scheduling.status != SchedulingStatus.CANCELLED.value,
        )
        if ignore_id:
            query = query.filter(Scheduling.id != ignore_id)

        exact = query.filter(
            Scheduling.scheduled_time == scheduled_time,
            Scheduling.service_id == service.id,
        ).first()
        if exact:
            raise _unprocessable("Já existe um agendamento para este serviço neste horário.")

        start = slot_start(scheduled_date, scheduled_time)
        end = start + SLOT_DURATION

        candidates = query.options(joinedload(Scheduling.service)).filter(
            Scheduling.establishment_id == establishment_id
        ).all()
        for existing in candidates:
            existing_start = slot_start(existing.scheduled_date, existing.scheduled_time)
            existing_end = existing_start + SLOT_DURATION
            if not (start < existing_end and end > existing_start):
                continue

            if service.user_id:
                if existing.service and existing.service.user_id == service.user_id:
                    raise _unprocessable("Este horário conflita com outro agendamento do mesmo funcionário.")
            else:
                raise _unprocessable("Este horário conflita com outro agendamento no estabelecimento.")

    # ===== NOTIFICACIONES =====

    def _notify_owner_created(self, scheduling: Scheduling) -> None:
        owner = scheduling.establishment.owner
        if owner:
            send_scheduling_confirmation_task.delay(
                owner_email=owner.email,
                owner_name=owner.name,
                scheduling=scheduling.as_notification()
            )

    def _notify_status_change(self, scheduling: Scheduling, old_status: str, new_status: str) -> None:
        owner = scheduling.establishment.owner
        if owner:
            send_status_change_task.delay(
                owner_email=owner.email,
                owner_name=owner.name,
                scheduling=scheduling.as_notification(),
                old_status=old_status,
                new_status=new_status
            )

    # ===== VENTA AUTOMÁTICA =====

    def create_sale_from_scheduling(self, scheduling: Scheduling, user: User) -> Optional[Sale]:
        """Genera la venta (y su comisión) de un agendamiento completado, una sola vez."""
        existing = self.db.query(Sale.id).filter(Sale.scheduling_id == scheduling.id).first()
        if existing:
            return None

        service = self.db.get(Service, scheduling.service_id)
        if not service:
            return None

        sale = Sale(
            establishment_id=scheduling.establishment_id,
            service_id=service.id,
            client_id=scheduling.client_id,
            scheduling_id=scheduling.id,
            user_id=service.user_id or user.id,
            amount=service.price,
            payment_method=SalePaymentMethod.PIX.value,
            sale_date=scheduling.scheduled_date,
            status=SaleStatus.PENDING.value,
            notes=AUTO_SALE_NOTE,
        )
        self.db.add(sale)
        self.db.flush()
        CommissionManager(self.db).create_for_sale(sale)
        logger.info(f"Sale {sale.id} created from completed scheduling {scheduling.id}")
        return sale

    # ===== CRUD =====

    def list_schedulings(
        self,
        user: User,
        params: PaginationParams,
        establishment_id: Optional[UUID] = None,
        service_id: Optional[UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> dict:
        query = self._base_query()

        visible = visible_establishment_ids(self.db, user)
        if visible is not None:
            query = query.filter(Scheduling.establishment_id.in_(visible))

        if establishment_id:
            query = query.filter(Scheduling.establishment_id == establishment_id)
        if service_id:
            query = query.filter(Scheduling.service_id == service_id)
        if date_from:
            query = query.filter(Scheduling.scheduled_date >= date_from)
        if date_to:
            query = query.filter(Scheduling.scheduled_date <= date_to)

        query = query.order_by(Scheduling.scheduled_date.asc(), Scheduling.scheduled_time.asc(), Scheduling.id.asc())
        return paginate(query, params)

    def create_scheduling(self, user: User, data: SchedulingCreate) -> Scheduling:
        establishment = get_establishment_or_404(self.db, data.establishment_id)
        ensure_can_operate(self.db, user, establishment)

        service = self._get_service_in(data.service_id, establishment.id)

        client = self._resolve_client(data.client_id, establishment)
        client_name = client.name if client else data.client_name
        if not client_name:
            raise _unprocessable("O nome do cliente é obrigatório.")

        self.validate_slot(data.scheduled_date, data.scheduled_time, service, establishment.id)

        scheduling = Scheduling(
            scheduled_date=data.scheduled_date,
            scheduled_time=data.scheduled_time,
            service_id=service.id,
            establishment_id=establishment.id,
            client_id=client.id if client else None,
            client_name=client_name,
            status=data.status.value,
        )
        self.db.add(scheduling)
        self.db.commit()

        scheduling = self._get_scheduling_or_404(scheduling.id)
        self._notify_owner_created(scheduling)
        return scheduling

    def get_scheduling(self, user: User, scheduling_id: UUID) -> Scheduling:
        scheduling = self._get_scheduling_or_404(scheduling_id)
        ensure_can_operate(self.db, user, scheduling.establishment)
        return scheduling

    def update_scheduling(self, user: User, scheduling_id: UUID, data: SchedulingUpdate) -> Scheduling:
        scheduling = self._get_scheduling_or_404(scheduling_id)
        ensure_can_operate(self.db, user, scheduling.establishment)

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("status") is not None:
            update_data["status"] = update_data["status"].value

        establishment = scheduling.establishment
        if update_data.get("establishment_id") and update_data["establishment_id"] != scheduling.establishment_id:
            establishment = get_establishment_or_404(self.db, update_data["establishment_id"])
            ensure_can_operate(self.db, user, establishment)

        service_id = update_data.get("service_id") or scheduling.service_id
        service = self._get_service_in(service_id, establishment.id)

        if update_data.get("client_id") is not None:
            client = self._resolve_client(update_data["client_id"], establishment)
            if client:
                update_data["client_name"] = client.name
            else:
                update_data.pop("client_id")

        self.validate_slot(
            update_data.get("scheduled_date") or scheduling.scheduled_date,
            update_data.get("scheduled_time") or scheduling.scheduled_time,
            service,
            establishment.id,
            ignore_id=scheduling.id,
        )

        old_status = scheduling.status
        for field, value in update_data.items():
            if value is None and field != "client_id":
                continue
            setattr(scheduling, field, value)

        new_status = scheduling.status
        try:
            self.db.flush()
            if new_status == SchedulingStatus.COMPLETED.value and old_status != SchedulingStatus.COMPLETED.value:
                self.create_sale_from_scheduling(scheduling, user)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating scheduling {scheduling_id}: {e}")
            raise

        self.db.expire_all()
        scheduling = self._get_scheduling_or_404(scheduling_id)
        if new_status != old_status:
            self._notify_status_change(scheduling, old_status, new_status)
        return scheduling

    def delete_scheduling(self, user: User, scheduling_id: UUID) -> None:
        scheduling = self._get_scheduling_or_404(scheduling_id)
        ensure_can_operate(self.db, user, scheduling.establishment)
        self.db.delete(scheduling)
        self.db.commit()
