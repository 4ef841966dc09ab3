"""
Recordatorios periódicos de agendamientos (Celery beat)
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from app.common.dates import local_now
from app.core.celery import celery_app
from app.database.database import SessionLocal
from app.modules.email.tasks import send_scheduling_reminder_task
from app.modules.establishments.models import Establishment
from app.modules.schedulings.models import Scheduling, SchedulingStatus

logger = logging.getLogger(__name__)

REMINDER_OFFSETS = {
    "24h": timedelta(hours=24),
    "1h": timedelta(hours=1),
}
WINDOW = timedelta(hours=1)


def due_schedulings(db: Session, reminder_type: str, now: Optional[datetime] = None) -> List[Scheduling]:
    """
    Agendamientos confirmados cuyo horario cae a +-1 hora del momento objetivo
    (ahora + 24h o ahora + 1h, en la zona horaria del negocio).
    """
    target = (now or local_now()) + REMINDER_OFFSETS[reminder_type]
    target_date = target.date()

    lower = target - WINDOW
    upper = target + WINDOW
    lower_time = lower.strftime("%H:%M") if lower.date() == target_date else "00:00"
    upper_time = upper.strftime("%H:%M") if upper.date() == target_date else "23:59"

    return db.query(Scheduling).options(
        joinedload(Scheduling.service),
        joinedload(Scheduling.establishment).joinedload(Establishment.owner),
    ).filter(
        Scheduling.scheduled_date == target_date,
        Scheduling.status == SchedulingStatus.CONFIRMED.value,
        Scheduling.scheduled_time >= lower_time,
        Scheduling.scheduled_time <= upper_time,
    ).order_by(Scheduling.scheduled_time.asc()).all()


def dispatch_reminders(db: Session, reminder_type: str, now: Optional[datetime] = None) -> int:
    """Encola un email por agendamiento al owner del establecimiento. Devuelve cuántos."""
    sent = 0
    for scheduling in due_schedulings(db, reminder_type, now):
        owner = scheduling.establishment.owner if scheduling.establishment else None
        if not owner:
            continue
        send_scheduling_reminder_task.delay(
            owner_email=owner.email,
            owner_name=owner.name,
            scheduling=scheduling.as_notification(),
            reminder_type=reminder_type
        )
        sent += 1
    return sent


@celery_app.task(bind=True, max_retries=3)
def send_scheduling_reminders(self, reminder_type: str = "24h"):
    """
    Periodic task: recordatorios de 24h (diario) o 1h (cada hora).
    """
    if reminder_type not in REMINDER_OFFSETS:
        logger.error(f"Invalid reminder type: {reminder_type}")
        return {"status": "error", "message": "Tipo inválido. Use 24h ou 1h."}

    db = SessionLocal()
    try:
        sent = dispatch_reminders(db, reminder_type)
        logger.info(f"Enviados {sent} lembretes de {reminder_type}.")
        return {"status": "success", "type": reminder_type, "sent": sent}

    except Exception as exc:
        logger.error(f"Scheduling reminders failed: {str(exc)}")
        raise self.retry(exc=exc, countdown=120)
    finally:
        db.close()
