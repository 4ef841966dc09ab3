from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from uuid import uuid4
from enum import Enum
from app.database.database import Base
from app.common.mixins import TimestampMixin


class UserRole(str, Enum):
    """Roles del sistema."""
    ADMIN = "admin"
    OWNER = "owner"
    EMPLOYEE = "employee"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.OWNER.value)
    is_active = Column(Boolean, default=True, nullable=False)
    email_verified_at = Column(DateTime(timezone=True), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    establishments = relationship("Establishment", back_populates="owner", cascade="all, delete-orphan")
    services = relationship("Service", back_populates="user")
    work_establishments = relationship(
        "Establishment",
        secondary="employee_establishment",
        back_populates="employees",
    )
    user_plans = relationship("UserPlan", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_owner(self) -> bool:
        return self.role == UserRole.OWNER.value

    @property
    def is_employee(self) -> bool:
        return self.role == UserRole.EMPLOYEE.value


class EmailVerificationToken(Base):
    """Un token pendiente por email; el token se guarda hasheado."""
    __tablename__ = "email_verifications"

    email = Column(String(255), primary_key=True)
    token = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"

    email = Column(String(255), primary_key=True)
    token = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


class RevokedToken(Base):
    """JWT invalidados por logout, identificados por jti."""
    __tablename__ = "revoked_tokens"

    jti = Column(String(64), primary_key=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
