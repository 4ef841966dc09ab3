"""
Envío de correos por SMTP con templates Jinja2.

Los templates reciben siempre ``app_name`` y ``frontend_url``; el resto
del contexto lo arma cada tarea de Celery.
"""
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.core.config import settings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
SMTP_SSL_PORT = 465


class EmailService:

    def __init__(self):
        self.smtp_server = settings.EMAIL_SMTP_SERVER
        self.smtp_port = settings.EMAIL_SMTP_PORT
        self.username = settings.EMAIL_USERNAME
        self.password = settings.EMAIL_PASSWORD
        self.use_tls = settings.EMAIL_USE_TLS
        self.from_email = settings.EMAIL_FROM or settings.EMAIL_USERNAME
        self.from_name = settings.EMAIL_FROM_NAME
        self.frontend_url = settings.FRONTEND_URL.rstrip("/")

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html", "xml"])
        )

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        template = self.jinja_env.get_template(template_name)
        return template.render(app_name=settings.APP_NAME, frontend_url=self.frontend_url, **context)

    def build_message(
        self,
        to_emails: List[str],
        subject: str,
        html_content: Optional[str] = None,
        text_content: Optional[str] = None,
        reply_to: Optional[str] = None
    ) -> MIMEMultipart:
        """Mensaje multipart con la parte de texto antes de la HTML."""
        if not html_content and not text_content:
            raise ValueError("Email sin contenido")

        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = formataddr((self.from_name, self.from_email))
        message["To"] = ", ".join(to_emails)
        if reply_to:
            message["Reply-To"] = reply_to

        if text_content:
            message.attach(MIMEText(text_content, "plain", "utf-8"))
        if html_content:
            message.attach(MIMEText(html_content, "html", "utf-8"))
        return message

    def _connect(self) -> smtplib.SMTP:
        # 465 habla TLS desde el inicio; el resto usa STARTTLS si está habilitado
        if self.smtp_port == SMTP_SSL_PORT or not self.use_tls:
            server = smtplib.SMTP_SSL(self.smtp_server, self.smtp_port, context=ssl.create_default_context())
        else:
            server = smtplib.SMTP(self.smtp_server, self.smtp_port)
            server.starttls(context=ssl.create_default_context())

        if self.username:
            server.login(self.username, self.password)
        return server

    def send_email(
        self,
        to_emails: List[str],
        subject: str,
        html_content: Optional[str] = None,
        text_content: Optional[str] = None,
        reply_to: Optional[str] = None
    ) -> bool:
        """
        Envía el correo. Devuelve False si falla; las tareas de Celery
        deciden si reintentar.
        """
        if not to_emails:
            logger.warning(f"Email '{subject}' sin destinatarios, no se envía")
            return False

        try:
            message = self.build_message(to_emails, subject, html_content, text_content, reply_to)
            with self._connect() as server:
                server.sendmail(self.from_email, to_emails, message.as_string())
        except (smtplib.SMTPException, OSError, ValueError) as e:
            logger.error(f"Error sending email '{subject}' to {', '.join(to_emails)}: {str(e)}")
            return False

        logger.info(f"Email '{subject}' sent to {', '.join(to_emails)}")
        return True

    def send_template_email(
        self,
        to_emails: List[str],
        subject: str,
        template_name: str,
        context: Dict[str, Any],
        reply_to: Optional[str] = None
    ) -> bool:
        html_content = self.render_template(template_name, context)
        return self.send_email(to_emails, subject, html_content=html_content, reply_to=reply_to)


email_service = EmailService()
