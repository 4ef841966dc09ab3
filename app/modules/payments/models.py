from sqlalchemy import Column, String, Text, DateTime, Numeric, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from enum import Enum
from app.database.database import Base
from app.common.mixins import BaseMixin


class PaymentMethod(str, Enum):
    PIX = "pix"
    BOLETO = "boleto"
    CREDIT_CARD = "credit_card"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    APPROVED = "approved"
    REJECTED = "rejected"


class Payment(Base, BaseMixin):
    """Cobro de un plan procesado por Mercado Pago."""
    __tablename__ = "payments"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(UUID(as_uuid=True), ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True)
    user_plan_id = Column(
        UUID(as_uuid=True), ForeignKey("user_plans.id", ondelete="SET NULL"), nullable=True, index=True
    )
    mercadopago_payment_id = Column(String(64), nullable=True, index=True)
    payment_method = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    amount = Column(Numeric(10, 2), nullable=False)

    # PIX
    qr_code = Column(Text, nullable=True)
    qr_code_base64 = Column(Text, nullable=True)
    # Boleto
    barcode = Column(Text, nullable=True)
    barcode_base64 = Column(Text, nullable=True)

    payment_url = Column(String(500), nullable=True)
    transaction_id = Column(String(64), nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    payment_metadata = Column(JSON, nullable=True)

    # Relationships
    user = relationship("User")
    plan = relationship("Plan")
    user_plan = relationship("UserPlan", back_populates="payments")

    def __repr__(self):
        return f"<Payment(id={self.id}, method={self.payment_method}, status={self.status})>"
