from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Request, status
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User
from app.modules.payments.schemas import PaymentProcessRequest, PaymentOut, WebhookResponse
from app.modules.payments.service import PaymentService

router = APIRouter(
    prefix="/payments",
    tags=["Payments"],
    responses={404: {"description": "Not found"}}
)


@router.post("/process", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def process_payment(
    payment_data: PaymentProcessRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    """
    Procesar el pago de un plan

    - **pix**: devuelve qr_code / qr_code_base64
    - **boleto**: devuelve barcode y payment_url
    - **credit_card**: requiere credit_card.token (SDK de Mercado Pago) y credit_card.cpf
    """
    return PaymentService(db).process(current_user, payment_data)


@router.get("/{payment_id}/status", response_model=PaymentOut)
def get_payment_status(
    payment_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(AuthDependencies.get_current_user)
):
    return PaymentService(db).get_status(current_user, payment_id)


async def webhook_payload(request: Request) -> dict:
    """Cuerpo de la notificación, completado con los query params (type, data.id)."""
    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    params = request.query_params
    payload.setdefault("type", params.get("type") or params.get("topic"))
    if params.get("data.id") and not (payload.get("data") or {}).get("id"):
        payload["data"] = {"id": params.get("data.id")}
    return payload


@router.post("/webhook", response_model=WebhookResponse)
def mercadopago_webhook(
    payload: dict = Depends(webhook_payload),
    db: Session = Depends(get_db),
    x_signature: Optional[str] = Header(None),
    x_request_id: Optional[str] = Header(None),
):
    """Notificaciones de Mercado Pago (público)."""
    return PaymentService(db).handle_webhook(payload, x_signature, x_request_id)
