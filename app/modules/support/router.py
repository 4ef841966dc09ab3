import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status

from app.common.dates import local_now
from app.core.config import settings
from app.dependencies.userDependencies import optional_user_dependency
from app.modules.auth.models import User
from app.modules.email.tasks import send_email_task
from app.modules.support.schemas import SupportMessage, SupportResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/support",
    tags=["Support"],
)


def build_support_text(data: SupportMessage, name: str, email: str, user: Optional[User]) -> str:
    return (
        "Nova mensagem de suporte\n\n"
        f"Nome: {name}\n"
        f"Email: {email}\n"
        f"Assunto: {data.subject}\n\n"
        f"Mensagem:\n{data.message}\n\n"
        "---\n"
        f"Enviado em: {local_now().strftime('%d/%m/%Y %H:%M:%S')}\n"
        f"ID do usuário: {user.id if user else 'Não autenticado'}"
    )


@router.post("", response_model=SupportResponse)
async def send_support_message(
    data: SupportMessage,
    current_user: optional_user_dependency
):
    """
    Enviar mensaje al equipo de soporte

    Si hay sesión, el nombre y email del usuario reemplazan a los enviados.
    El email llega a SUPPORT_EMAIL con reply-to del remitente.
    """
    name = current_user.name if current_user else data.name
    email = current_user.email if current_user else str(data.email)

    try:
        send_email_task.delay(
            to_emails=[settings.SUPPORT_EMAIL],
            subject=f"[Suporte] {data.subject}",
            text_content=build_support_text(data, name, email, current_user),
            reply_to=email,
        )
    except Exception as e:
        logger.error(f"Error al encolar mensaje de soporte: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Erro ao enviar mensagem. Tente novamente mais tarde."
        )

    logger.info(f"Mensaje de soporte de {email} encolado")
    return {"message": "Mensagem enviada com sucesso! Entraremos em contato em breve."}
