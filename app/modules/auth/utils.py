"""
Hash de contraseñas, tokens aleatorios y JWT de acceso.
"""
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from uuid import uuid4

import jwt
from passlib.context import CryptContext

from app.core.config import settings

SECRET_KEY = settings.APP_SECRET_STRING
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

TOKEN_ALPHABET = string.ascii_letters + string.digits

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    """Un hash vacío nunca coincide."""
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def generate_secure_token(length: int = 64) -> str:
    """Token alfanumérico para links de verificación y reseteo; se guarda hasheado."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> Tuple[str, datetime]:
    """
    JWT de acceso con ``jti`` único para poder revocarlo en el logout.

    Returns:
        (token, fecha de expiración en UTC)
    """
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {**data, "exp": expire, "type": "access", "jti": uuid4().hex}
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM), expire


def decode_token(token: str) -> dict:
    """Lanza jwt.PyJWTError si es inválido o expiró."""
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
