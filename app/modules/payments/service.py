import logging
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.common.dates import now_utc
from app.core.config import settings
from app.modules.auth.models import User
from app.modules.payments.mercadopago import MercadoPagoError, MercadoPagoService, verify_signature
from app.modules.payments.models import Payment, PaymentMethod, PaymentStatus
from app.modules.payments.schemas import PaymentProcessRequest
from app.modules.plans.models import Plan
from app.modules.plans.service import PlanService

logger = logging.getLogger(__name__)

# Campos del resultado del gateway que se copian tal cual al Payment
GATEWAY_FIELDS = ("qr_code", "qr_code_base64", "barcode", "barcode_base64", "due_date", "transaction_id")


class PaymentService:

    def __init__(self, db: Session, gateway: Optional[MercadoPagoService] = None):
        self.db = db
        self.gateway = gateway or MercadoPagoService()

    def _ensure_gateway(self):
        if not self.gateway.is_available:
            logger.error("Mercado Pago sin access token configurado")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Serviço de pagamento não está disponível. Verifique as configurações."
            )

    def _apply_result(self, payment: Payment, result: dict) -> None:
        if result.get("id"):
            payment.mercadopago_payment_id = result["id"]
        payment.status = result.get("status") or PaymentStatus.PENDING.value
        for field in GATEWAY_FIELDS:
            value = result.get(field)
            if value is not None:
                setattr(payment, field, value)
        if result.get("ticket_url"):
            payment.payment_url = result["ticket_url"]

    def _activate(self, payment: Payment) -> None:
        """Activa el plan pagado y vincula los pagos pendientes de vínculo."""
        user_plan = PlanService(self.db).activate_plan(payment.user_id, payment.plan, commit=False)
        self.db.query(Payment).filter(
            Payment.user_id == payment.user_id,
            Payment.plan_id == payment.plan_id,
            Payment.user_plan_id.is_(None),
        ).update({"user_plan_id": user_plan.id}, synchronize_session=False)
        payment.user_plan_id = user_plan.id
        payment.paid_at = payment.paid_at or now_utc()

    def _charge(self, payment: Payment, plan: Plan, user: User, data: PaymentProcessRequest) -> dict:
        common = {
            "amount": float(plan.price),
            "description": f"Plano {plan.name}",
            "email": user.email,
            "metadata": payment.payment_metadata,
        }
        if data.payment_method == PaymentMethod.PIX:
            return self.gateway.create_pix(name=user.name, **common)
        if data.payment_method == PaymentMethod.BOLETO:
            return self.gateway.create_boleto(name=user.name, cpf=data.cpf, **common)
        return self.gateway.create_card(
            token=data.credit_card.token,
            cpf=data.credit_card.cpf,
            installments=data.installments,
            **common
        )

    # ===== OPERACIONES =====

    def process(self, user: User, data: PaymentProcessRequest) -> Payment:
        """
        Crea el cobro en Mercado Pago para el plan elegido.

        Todo ocurre en una transacción: si el gateway falla no queda el
        Payment pendiente. Un cobro aprobado al instante activa el plan.
        """
        plan = self.db.get(Plan, data.plan_id)
        if not plan:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plano não encontrado.")
        if not plan.is_active:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Este plano não está disponível.")
        self._ensure_gateway()

        try:
            payment = Payment(
                user_id=user.id,
                plan_id=plan.id,
                payment_method=data.payment_method.value,
                status=PaymentStatus.PENDING.value,
                amount=plan.price,
            )
            self.db.add(payment)
            self.db.flush()
            payment.payment_metadata = {
                "payment_id": str(payment.id),
                "plan_id": str(plan.id),
                "user_id": str(user.id),
                "installments": data.installments,
            }

            result = self._charge(payment, plan, user, data)
            self._apply_result(payment, result)

            if payment.status == PaymentStatus.APPROVED.value:
                self._activate(payment)

            self.db.commit()
            self.db.refresh(payment)
            logger.info(f"Pago {payment.id} ({payment.payment_method}) creado con estado {payment.status}")
            return payment

        except MercadoPagoError as e:
            self.db.rollback()
            logger.error(f"Mercado Pago rechazó el pago del plan {plan.id}: {e.message}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Erro ao processar pagamento: {e.message}"
            )
        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error procesando pago del plan {plan.id}: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Erro ao processar pagamento."
            )

    def get_status(self, user: User, payment_id: UUID) -> Payment:
        """Estado de un pago propio, actualizado desde Mercado Pago."""
        payment = self.db.query(Payment).filter(
            Payment.id == payment_id,
            Payment.user_id == user.id
        ).first()
        if not payment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pagamento não encontrado.")
        self._ensure_gateway()

        if payment.mercadopago_payment_id:
            try:
                result = self.gateway.get_payment(payment.mercadopago_payment_id)
            except MercadoPagoError as e:
                logger.warning(f"No se pudo consultar el pago {payment.id} en Mercado Pago: {e.message}")
                return payment

            self._apply_result(payment, result)
            if payment.status == PaymentStatus.APPROVED.value and not payment.user_plan_id:
                self._activate(payment)
            self.db.commit()
            self.db.refresh(payment)

        return payment

    def handle_webhook(self, payload: dict, x_signature: Optional[str], x_request_id: Optional[str]) -> dict:
        """
        Notificación de Mercado Pago.

        Los errores al procesar se registran y se responde 200 para que
        Mercado Pago no reintente indefinidamente.
        """
        data = payload.get("data") or {}
        data_id = str(data.get("id") or "")
        logger.info(f"Webhook de Mercado Pago recibido: type={payload.get('type')} id={data_id}")

        secret = settings.MERCADOPAGO_WEBHOOK_SECRET
        if secret:
            if not x_signature or not x_request_id:
                raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Assinatura inválida")
            if not verify_signature(secret, x_signature, x_request_id, data_id):
                logger.warning(f"Firma inválida en webhook de Mercado Pago (id={data_id})")
                raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Assinatura inválida")

        if payload.get("type") != "payment":
            return {"status": "ok", "message": "Evento ignorado"}

        if not data_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="ID de pagamento não encontrado")

        payment = self.db.query(Payment).filter(Payment.mercadopago_payment_id == data_id).first()
        if not payment:
            return {"status": "ok", "message": "Pagamento não encontrado"}

        if not self.gateway.is_available:
            return {"status": "ok", "message": "Serviço não disponível, mas webhook recebido"}

        try:
            result = self.gateway.get_payment(data_id)
            self._apply_result(payment, result)
            if payment.status == PaymentStatus.APPROVED.value and not payment.user_plan_id:
                self._activate(payment)
            self.db.commit()
            logger.info(f"Pago {payment.id} actualizado por webhook a {payment.status}")
        except (MercadoPagoError, SQLAlchemyError) as e:
            self.db.rollback()
            logger.error(f"Error procesando webhook del pago {data_id}: {str(e)}")
            return {"status": "ok", "message": "Erro ao processar, mas webhook recebido"}
        except Exception as e:
            self.db.rollback()
            logger.exception(f"Error inesperado procesando webhook del pago {data_id}: {str(e)}")
            return {"status": "ok", "message": "Erro ao processar, mas webhook recebido"}

        return {"status": "ok"}
