from typing import Optional
from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from app.modules.payments.models import PaymentMethod, PaymentStatus
from app.modules.plans.schemas import PlanOut


class CreditCardData(BaseModel):
    """Datos de tarjeta; el token lo genera el SDK de Mercado Pago en el frontend."""
    token: str = Field(..., min_length=1)
    cpf: str = Field(..., min_length=1, max_length=20)
    name: Optional[str] = Field(None, max_length=255)


class PaymentProcessRequest(BaseModel):
    plan_id: UUID
    payment_method: PaymentMethod
    credit_card: Optional[CreditCardData] = None
    installments: int = Field(1, ge=1, le=12, description="Parcelas (sólo tarjeta)")
    cpf: Optional[str] = Field(None, max_length=20, description="CPF del pagador (boleto)")

    @model_validator(mode="after")
    def card_required(self):
        if self.payment_method == PaymentMethod.CREDIT_CARD and not self.credit_card:
            raise ValueError("Os dados do cartão são obrigatórios para pagamento com cartão de crédito")
        return self


class PaymentOut(BaseModel):
    id: UUID
    user_id: UUID
    plan_id: UUID
    user_plan_id: Optional[UUID] = None
    mercadopago_payment_id: Optional[str] = None
    payment_method: PaymentMethod
    status: PaymentStatus
    amount: Decimal
    qr_code: Optional[str] = None
    qr_code_base64: Optional[str] = None
    barcode: Optional[str] = None
    barcode_base64: Optional[str] = None
    payment_url: Optional[str] = None
    transaction_id: Optional[str] = None
    due_date: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    plan: Optional[PlanOut] = None

    class Config:
        from_attributes = True


class WebhookResponse(BaseModel):
    status: str
    message: Optional[str] = None
