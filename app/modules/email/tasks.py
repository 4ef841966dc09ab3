"""
Tareas asíncronas de Celery para el envío de correos electrónicos.
"""
import logging
from typing import Dict, Any, List, Optional
from app.core.celery import celery_app
from app.modules.email.service import email_service

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    "pending": "Pendente",
    "confirmed": "Confirmado",
    "completed": "Concluído",
    "cancelled": "Cancelado",
}


def _send_or_retry(task, to_emails: List[str], subject: str, template_name: str, context: Dict[str, Any], countdown_base: int = 60):
    """Envía un template y reintenta con backoff exponencial si falla."""
    try:
        success = email_service.send_template_email(
            to_emails=to_emails,
            subject=subject,
            template_name=template_name,
            context=context
        )

        if not success:
            raise RuntimeError(f"Failed to send {template_name}")

        return {"status": "success", "template": template_name, "recipients": to_emails}

    except Exception as exc:
        logger.error(f"Template email {template_name} failed: {str(exc)}")

        if task.request.retries < task.max_retries:
            raise task.retry(exc=exc, countdown=countdown_base * (2 ** task.request.retries))

        return {"status": "failed", "error": str(exc), "template": template_name, "recipients": to_emails}


@celery_app.task(bind=True, max_retries=3)
def send_email_task(
    self,
    to_emails: List[str],
    subject: str,
    html_content: Optional[str] = None,
    text_content: Optional[str] = None,
    reply_to: Optional[str] = None
):
    """
    Tarea asíncrona para envío de correos electrónicos.
    """
    try:
        success = email_service.send_email(
            to_emails=to_emails,
            subject=subject,
            html_content=html_content,
            text_content=text_content,
            reply_to=reply_to
        )

        if not success:
            raise RuntimeError("Failed to send email")

        return {"status": "success", "recipients": to_emails}

    except Exception as exc:
        logger.error(f"Email sending failed: {str(exc)}")

        # Retry with exponential backoff
        if self.request.retries < self.max_retries:
            raise self.retry(exc=exc, countdown=60 * (2 ** self.request.retries))

        return {"status": "failed", "error": str(exc), "recipients": to_emails}


# ===== AUTENTICACIÓN =====

@celery_app.task(bind=True, max_retries=3)
def send_verification_email_task(self, user_email: str, user_name: str, verification_url: str):
    """
    Enviar correo de verificación de cuenta.
    """
    context = {
        "user_name": user_name,
        "verification_url": verification_url,
        "support_email": email_service.from_email
    }
    return _send_or_retry(self, [user_email], "Verifique seu email - Salões", "verify_email.html", context, countdown_base=30)


@celery_app.task(bind=True, max_retries=3)
def send_welcome_email_task(self, user_email: str, user_name: str):
    """Enviar bienvenida tras verificar el email."""
    context = {
        "user_name": user_name,
        "dashboard_url": f"{email_service.frontend_url}/dashboard"
    }
    return _send_or_retry(self, [user_email], "Bem-vindo ao Salões!", "welcome.html", context)


@celery_app.task(bind=True, max_retries=3)
def send_password_reset_email_task(self, user_email: str, user_name: str, reset_url: str):
    """
    Enviar correo de restablecimiento de contraseña.
    """
    context = {
        "user_name": user_name,
        "reset_url": reset_url,
        "support_email": email_service.from_email
    }
    return _send_or_retry(self, [user_email], "Redefinição de senha - Salões", "password_reset.html", context, countdown_base=30)


# ===== AGENDAMIENTOS =====

@celery_app.task(bind=True, max_retries=3)
def send_scheduling_confirmation_task(self, owner_email: str, owner_name: str, scheduling: Dict[str, Any]):
    """
    Notificar al dueño del establecimiento sobre un nuevo agendamiento.

    `scheduling` es un dict serializable: client_name, service_name,
    establishment_name, date (DD/MM/YYYY) y time (HH:MM).
    """
    context = {"owner_name": owner_name, "scheduling": scheduling}
    return _send_or_retry(self, [owner_email], "Agendamento Confirmado - Salões", "scheduling_confirmation.html", context)


@celery_app.task(bind=True, max_retries=3)
def send_status_change_task(self, owner_email: str, owner_name: str, scheduling: Dict[str, Any], old_status: str, new_status: str):
    """Notificar cambio de estado de un agendamiento."""
    context = {
        "owner_name": owner_name,
        "scheduling": scheduling,
        "old_status": STATUS_LABELS.get(old_status, old_status),
        "new_status": STATUS_LABELS.get(new_status, new_status),
    }
    return _send_or_retry(self, [owner_email], "Status do Agendamento Atualizado - Salões", "status_change.html", context)


@celery_app.task(bind=True, max_retries=3)
def send_scheduling_reminder_task(self, owner_email: str, owner_name: str, scheduling: Dict[str, Any], reminder_type: str):
    """Recordatorio de agendamiento (24h o 1h antes)."""
    context = {
        "owner_name": owner_name,
        "scheduling": scheduling,
        "reminder_type": reminder_type,
        "time_label": "amanhã" if reminder_type == "24h" else "em 1 hora",
    }
    return _send_or_retry(self, [owner_email], "Lembrete de Agendamento - Salões", "scheduling_reminder.html", context)
