from sqlalchemy import Column, String, Text, Date, Numeric, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from enum import Enum
from app.database.database import Base
from app.common.mixins import BaseMixin


class CommissionStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class Commission(Base, BaseMixin):
    """Comisión de un empleado sobre una venta."""
    __tablename__ = "commissions"

    sale_id = Column(UUID(as_uuid=True), ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    percentage = Column(Numeric(5, 2), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default=CommissionStatus.PENDING.value, index=True)
    payment_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    sale = relationship("Sale", back_populates="commissions")
    user = relationship("User")
