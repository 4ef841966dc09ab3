"""
Modelos de planes de suscripción.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Text, Integer, Numeric, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from enum import Enum
from app.database.database import Base
from app.common.mixins import BaseMixin


class PlanInterval(str, Enum):
    """Ciclos de cobro."""
    MONTHLY = "monthly"
    YEARLY = "yearly"


class UserPlanStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class Plan(Base, BaseMixin):
    """
    Plan comercial. Los límites en NULL significan ilimitado.
    """
    __tablename__ = "plans"

    name = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    interval = Column(String(20), nullable=False, default=PlanInterval.MONTHLY.value)
    features = Column(JSON, nullable=False, default=list)

    # Límites
    max_establishments = Column(Integer, nullable=True)
    max_services = Column(Integer, nullable=True)
    max_employees = Column(Integer, nullable=True)

    is_popular = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    user_plans = relationship("UserPlan", back_populates="plan")

    @property
    def is_free(self) -> bool:
        return float(self.price or 0) == 0

    def __repr__(self):
        return f"<Plan(name={self.name}, interval={self.interval}, price={self.price})>"


class UserPlan(Base, BaseMixin):
    """Suscripción de un usuario a un plan."""
    __tablename__ = "user_plans"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(UUID(as_uuid=True), ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=UserPlanStatus.ACTIVE.value)
    starts_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True), nullable=True)  # null = no vence
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    user = relationship("User", back_populates="user_plans")
    plan = relationship("Plan", back_populates="user_plans")
    payments = relationship("Payment", back_populates="user_plan")
