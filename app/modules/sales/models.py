from sqlalchemy import Column, String, Text, Date, Numeric, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from enum import Enum
from app.database.database import Base
from app.common.mixins import BaseMixin


class SalePaymentMethod(str, Enum):
    PIX = "pix"
    CARTAO_CREDITO = "cartao_credito"
    CARTAO_DEBITO = "cartao_debito"
    DINHEIRO = "dinheiro"
    OUTRO = "outro"


class SaleStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class Sale(Base, BaseMixin):
    """Venta registrada en un establecimiento."""
    __tablename__ = "sales"

    establishment_id = Column(
        UUID(as_uuid=True), ForeignKey("establishments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id", ondelete="SET NULL"), nullable=True, index=True)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    # Empleado que realizó la venta
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    scheduling_id = Column(
        UUID(as_uuid=True), ForeignKey("schedulings.id", ondelete="SET NULL"), nullable=True, index=True
    )
    amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(String(20), nullable=False, default=SalePaymentMethod.PIX.value)
    status = Column(String(20), nullable=False, default=SaleStatus.PENDING.value, index=True)
    sale_date = Column(Date, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    # Relationships
    establishment = relationship("Establishment")
    service = relationship("Service")
    client = relationship("Client")
    user = relationship("User")
    scheduling = relationship("Scheduling", back_populates="sales")
    commissions = relationship("Commission", back_populates="sale", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Sale(id={self.id}, amount={self.amount}, status={self.status})>"
