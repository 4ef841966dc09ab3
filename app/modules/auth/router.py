from fastapi import APIRouter, Depends, status, Response
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.service import AuthService
from app.modules.auth.dependencies import get_current_user, security
from app.modules.auth.models import User
from app.modules.auth.utils import decode_token
from app.modules.auth.schemas import (
    UserCreate, UserLogin, MeOut, TokenResponse,
    EmailVerificationRequest, EmailVerificationConfirm, EmailVerificationResponse,
    PasswordResetRequest, PasswordResetConfirm, MessageResponse
)

auth_router = APIRouter(prefix="/auth", tags=["Auth"])

@auth_router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    Registrar nuevo usuario con verificación de email.

    - **role**: admin, owner o employee
    - Devuelve token de acceso; el email queda pendiente de verificación
    """
    return AuthService(db).register(user_data)

@auth_router.post("/login", response_model=TokenResponse)
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """
    Login de usuario. Retorna token de acceso.
    """
    return AuthService(db).login(credentials.email, credentials.password)

@auth_router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    current_user: User = Depends(get_current_user),
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
):
    """Revocar el token actual."""
    AuthService(db).logout(decode_token(credentials.credentials))
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@auth_router.get("/me", response_model=MeOut)
async def me(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """
    Obtener información del usuario actual con sus establecimientos y servicios.
    """
    return AuthService(db).me(current_user.id)

@auth_router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(request_data: PasswordResetRequest, db: Session = Depends(get_db)):
    """
    Solicitar restablecimiento de contraseña.
    """
    return {"message": AuthService(db).forgot_password(request_data.email)}

@auth_router.post("/reset-password", response_model=MessageResponse)
async def reset_password(reset_data: PasswordResetConfirm, db: Session = Depends(get_db)):
    """
    Restablecer contraseña con token.
    """
    message = AuthService(db).reset_password(reset_data.token, reset_data.email, reset_data.password)
    return {"message": message}

@auth_router.post("/verify-email", response_model=EmailVerificationResponse)
async def verify_email(verification_data: EmailVerificationConfirm, db: Session = Depends(get_db)):
    """
    Verificar email con token.
    """
    return AuthService(db).verify_email(verification_data.token, verification_data.email)

@auth_router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification_email(request_data: EmailVerificationRequest, db: Session = Depends(get_db)):
    """
    Reenviar email de verificación.
    """
    return {"message": AuthService(db).resend_verification(request_data.email)}
