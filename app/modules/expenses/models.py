from sqlalchemy import Column, String, Text, Date, Numeric, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from enum import Enum
from app.database.database import Base
from app.common.mixins import BaseMixin


class ExpensePaymentMethod(str, Enum):
    PIX = "pix"
    CARTAO_CREDITO = "cartao_credito"
    CARTAO_DEBITO = "cartao_debito"
    DINHEIRO = "dinheiro"
    TRANSFERENCIA = "transferencia"
    BOLETO = "boleto"
    OUTRO = "outro"


class ExpenseStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class Expense(Base, BaseMixin):
    """Gasto de un establecimiento."""
    __tablename__ = "expenses"

    establishment_id = Column(
        UUID(as_uuid=True), ForeignKey("establishments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description = Column(String(255), nullable=False)
    category = Column(String(255), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    payment_date = Column(Date, nullable=True)
    payment_method = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default=ExpenseStatus.PENDING.value, index=True)
    notes = Column(Text, nullable=True)

    establishment = relationship("Establishment")

    def is_overdue(self, today) -> bool:
        return self.status == ExpenseStatus.PENDING.value and self.due_date < today
