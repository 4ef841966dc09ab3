import logging
from datetime import datetime, timedelta, timezone
from urllib.parse import quote
from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.common.dates import now_utc, as_utc
from app.modules.auth.models import (
    User, UserRole, EmailVerificationToken, PasswordResetToken, RevokedToken
)
from app.modules.auth.schemas import UserCreate, UserOut, TokenResponse
from app.modules.auth.utils import (
    hash_password, verify_password, create_access_token, generate_secure_token, pwd_context
)
from app.modules.plans.service import PlanService
from app.modules.email.tasks import (
    send_verification_email_task, send_welcome_email_task, send_password_reset_email_task
)

logger = logging.getLogger(__name__)

RESET_LINK_SENT = "Se o email estiver cadastrado, você receberá um link para redefinir sua senha."
VERIFICATION_LINK_SENT = "Se o email estiver cadastrado e não verificado, você receberá um novo link de verificação."


class AuthService:
    """
    Servicio de autenticación: registro, login, verificación y reseteo.
    """

    def __init__(self, db: Session):
        self.db = db

    def _token_response(self, user: User, message: str = None) -> TokenResponse:
        token, expires_at = create_access_token({"sub": str(user.id), "role": user.role})
        return TokenResponse(
            token=token,
            token_type="Bearer",
            expires_at=expires_at,
            user=UserOut.model_validate(user),
            message=message
        )

    def _issue_verification(self, user: User) -> None:
        """Reemplaza el token de verificación del usuario y envía el link."""
        plain_token = generate_secure_token()
        self.db.query(EmailVerificationToken).filter(
            EmailVerificationToken.email == user.email
        ).delete(synchronize_session=False)
        self.db.add(EmailVerificationToken(
            email=user.email,
            token=pwd_context.hash(plain_token),
            created_at=now_utc()
        ))
        self.db.commit()

        verification_url = (
            f"{settings.FRONTEND_URL}/verify-email?token={plain_token}&email={quote(user.email)}"
        )
        send_verification_email_task.delay(
            user_email=user.email,
            user_name=user.name,
            verification_url=verification_url
        )

    def register(self, user_data: UserCreate) -> TokenResponse:
        """
        Crear usuario sin email verificado y enviar link de verificación.
        Los owners reciben el plan gratuito si existe.
        """
        existing_user = self.db.query(User).filter(User.email == user_data.email).first()
        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="O email informado já está em uso."
            )

        user = User(
            name=user_data.name,
            email=user_data.email,
            password=hash_password(user_data.password),
            role=user_data.role.value,
            email_verified_at=None
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        if user.role == UserRole.OWNER.value:
            PlanService(self.db).assign_free_plan(user)

        self._issue_verification(user)
        logger.info(f"User registered: {user.email} ({user.role})")

        return self._token_response(
            user,
            message="Conta criada com sucesso! Verifique seu email para ativar sua conta."
        )

    def login(self, email: str, password: str) -> TokenResponse:
        user = self.db.query(User).filter(User.email == email).first()

        if not user or not verify_password(password, user.password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Credenciais inválidas."
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Conta inativa."
            )

        user.last_login = now_utc()
        self.db.commit()
        self.db.refresh(user)

        return self._token_response(user)

    def logout(self, payload: dict) -> None:
        """Revoca el token actual (por jti) hasta su expiración."""
        jti = payload.get("jti")
        if not jti:
            return
        if self.db.get(RevokedToken, jti) is None:
            expires_at = now_utc() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
            if payload.get("exp"):
                expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
            self.db.add(RevokedToken(jti=jti, expires_at=expires_at))
            self.db.commit()

    def me(self, user_id) -> User:
        return self.db.query(User).options(
            selectinload(User.establishments),
            selectinload(User.services)
        ).filter(User.id == user_id).first()

    def forgot_password(self, email: str) -> str:
        """Solicitar restablecimiento de contraseña. No revela si el email existe."""
        user = self.db.query(User).filter(User.email == email).first()

        if not user:
            return RESET_LINK_SENT

        plain_token = generate_secure_token()
        record = self.db.get(PasswordResetToken, user.email)
        if record:
            record.token = pwd_context.hash(plain_token)
            record.created_at = now_utc()
        else:
            self.db.add(PasswordResetToken(
                email=user.email,
                token=pwd_context.hash(plain_token),
                created_at=now_utc()
            ))
        self.db.commit()

        reset_url = f"{settings.FRONTEND_URL}/reset-password?token={plain_token}&email={quote(user.email)}"
        send_password_reset_email_task.delay(
            user_email=user.email,
            user_name=user.name,
            reset_url=reset_url
        )

        return RESET_LINK_SENT

    def reset_password(self, token: str, email: str, new_password: str) -> str:
        """Restablecer contraseña con token."""
        record = self.db.get(PasswordResetToken, email)

        if not record:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Token inválido ou expirado."
            )

        if now_utc() - as_utc(record.created_at) > timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES):
            self.db.delete(record)
            self.db.commit()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Token expirado. Solicite um novo link de recuperação."
            )

        if not pwd_context.verify(token, record.token):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Token inválido."
            )

        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Usuário não encontrado."
            )

        user.password = hash_password(new_password)
        self.db.delete(record)
        self.db.commit()

        return "Senha redefinida com sucesso. Você já pode fazer login com a nova senha."

    def verify_email(self, token: str, email: str) -> dict:
        """Verificar email con token."""
        record = self.db.get(EmailVerificationToken, email)

        if not record:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Token de verificação inválido ou expirado."
            )

        if now_utc() - as_utc(record.created_at) > timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS):
            self.db.delete(record)
            self.db.commit()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Token expirado. Solicite um novo email de verificação."
            )

        if not pwd_context.verify(token, record.token):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Token inválido."
            )

        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Usuário não encontrado."
            )

        if user.email_verified_at:
            return {"message": "Email já foi verificado anteriormente.", "verified_at": user.email_verified_at}

        user.email_verified_at = now_utc()
        self.db.delete(record)
        self.db.commit()
        self.db.refresh(user)

        send_welcome_email_task.delay(user_email=user.email, user_name=user.name)

        return {
            "message": "Email verificado com sucesso! Sua conta está ativa.",
            "verified_at": user.email_verified_at
        }

    def resend_verification(self, email: str) -> str:
        """Reenviar email de verificación si el usuario aún no ha verificado."""
        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            # No revelar existencia
            return VERIFICATION_LINK_SENT

        if user.email_verified_at:
            return "Este email já foi verificado."

        self._issue_verification(user)
        return VERIFICATION_LINK_SENT
