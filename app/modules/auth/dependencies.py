"""
Dependencias de autenticación para FastAPI.
"""
from typing import Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import jwt

from app.database.database import get_db
from app.modules.auth.models import User, RevokedToken
from app.modules.auth.utils import decode_token

# Security scheme
security = HTTPBearer(auto_error=False)


def _parse_uuid(value) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


class AuthDependencies:
    """Dependencias de autenticación reutilizables."""

    @staticmethod
    def get_current_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
        db: Session = Depends(get_db)
    ) -> User:
        """
        Obtener usuario actual desde token JWT.
        Rechaza tokens revocados por logout.
        """
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Não autenticado.",
            headers={"WWW-Authenticate": "Bearer"},
        )

        if credentials is None:
            raise credentials_exception

        try:
            payload = decode_token(credentials.credentials)
        except jwt.PyJWTError:
            raise credentials_exception

        user_id = _parse_uuid(payload.get("sub"))
        if user_id is None or payload.get("type") != "access":
            raise credentials_exception

        jti = payload.get("jti")
        if jti and db.get(RevokedToken, jti) is not None:
            raise credentials_exception

        user = db.query(User).filter(User.id == user_id).first()

        if user is None or not user.is_active:
            raise credentials_exception

        return user

    @staticmethod
    def get_optional_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
        db: Session = Depends(get_db)
    ) -> Optional[User]:
        """
        Usuario actual si viene un token válido; None en otro caso.
        Para endpoints públicos que personalizan la respuesta.
        """
        if credentials is None:
            return None
        try:
            payload = decode_token(credentials.credentials)
        except jwt.PyJWTError:
            return None
        user_id = _parse_uuid(payload.get("sub"))
        if user_id is None:
            return None
        return db.query(User).filter(User.id == user_id, User.is_active.is_(True)).first()

    @staticmethod
    def require_role(allowed_roles: list[str]):
        """
        Dependencia para requerir roles específicos.
        """
        def role_checker(current_user: User = Depends(AuthDependencies.get_current_user)) -> User:
            if current_user.role not in allowed_roles:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Acesso negado."
                )
            return current_user
        return role_checker

    @staticmethod
    def require_owner_or_admin():
        """Dependencia para requerir rol de owner o admin."""
        return AuthDependencies.require_role(["owner", "admin"])

    @staticmethod
    def require_admin():
        return AuthDependencies.require_role(["admin"])


# Instancias de dependencias
get_current_user = AuthDependencies.get_current_user
get_optional_user = AuthDependencies.get_optional_user
require_owner_or_admin = AuthDependencies.require_owner_or_admin
require_admin = AuthDependencies.require_admin
