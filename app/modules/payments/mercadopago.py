"""
Cliente HTTP de la API de pagos de Mercado Pago.

Sólo cubre lo que usa la plataforma: crear cobros PIX, boleto y tarjeta,
consultar un cobro y validar la firma de los webhooks.
"""
import hashlib
import hmac
import logging
import re
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import httpx

from app.common.dates import local_now
from app.core.config import settings

logger = logging.getLogger(__name__)

STATUS_MAP = {
    "pending": "pending",
    "in_process": "processing",
    "in_mediation": "processing",
    "approved": "approved",
    "rejected": "rejected",
    "cancelled": "rejected",
    "refunded": "rejected",
    "charged_back": "rejected",
}

BOLETO_DAYS_TO_EXPIRE = 3
DEFAULT_CPF = "00000000000"


class MercadoPagoError(Exception):
    """Fallo de comunicación o rechazo de la API de Mercado Pago."""

    def __init__(self, message: str, status_code: Optional[int] = None, response: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response


def map_status(mp_status: Optional[str]) -> str:
    return STATUS_MAP.get(mp_status or "", "pending")


def clean_cpf(cpf: Optional[str]) -> str:
    digits = re.sub(r"\D", "", cpf or "")
    return digits if len(digits) == 11 else DEFAULT_CPF


def split_name(full_name: str) -> tuple:
    parts = (full_name or "").split()
    first = parts[0] if parts else ""
    last = parts[1] if len(parts) > 1 else ""
    return first, last


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Fecha de Mercado Pago no reconocida: {value}")
        return None


def verify_signature(secret: str, x_signature: Optional[str], x_request_id: Optional[str], data_id: str) -> bool:
    """
    Valida el header x-signature ("ts=...,v1=...") de un webhook.

    El v1 es el HMAC-SHA256 de "id:{data_id};request-id:{x_request_id};ts:{ts};"
    con el secreto del webhook.
    """
    if not x_signature or not x_request_id:
        return False

    parts = {}
    for part in x_signature.split(","):
        if "=" in part:
            key, value = part.split("=", 1)
            parts[key.strip()] = value.strip()

    ts = parts.get("ts")
    v1 = parts.get("v1")
    if not ts or not v1:
        logger.warning("Webhook de Mercado Pago con firma malformada")
        return False

    manifest = f"id:{data_id};request-id:{x_request_id};ts:{ts};"
    expected = hmac.new(secret.encode(), manifest.encode(), hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, v1)


class MercadoPagoService:
    """Envoltorio sobre /v1/payments."""

    def __init__(self, access_token: Optional[str] = None, base_url: Optional[str] = None):
        self.access_token = access_token if access_token is not None else settings.MERCADOPAGO_ACCESS_TOKEN
        self.base_url = (base_url or settings.MERCADOPAGO_BASE_URL).rstrip("/")
        self.timeout = settings.MERCADOPAGO_TIMEOUT

    @property
    def is_available(self) -> bool:
        return bool(self.access_token)

    def _headers(self, idempotency_key: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }
        if idempotency_key:
            headers["X-Idempotency-Key"] = idempotency_key
        return headers

    def _request(self, method: str, path: str, payload: Optional[dict] = None,
                 idempotency_key: Optional[str] = None) -> Dict[str, Any]:
        if not self.is_available:
            raise MercadoPagoError("Mercado Pago não está configurado.")

        url = f"{self.base_url}{path}"
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.request(method, url, json=payload, headers=self._headers(idempotency_key))
        except httpx.HTTPError as e:
            logger.error(f"Error de red con Mercado Pago ({method} {path}): {str(e)}")
            raise MercadoPagoError(f"Erro ao chamar API do Mercado Pago: {str(e)}")

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code not in (200, 201):
            message = data.get("message") or "Erro ao processar pagamento"
            cause = data.get("cause")
            if isinstance(cause, list) and cause and isinstance(cause[0], dict) and cause[0].get("description"):
                message = f"{message}: {cause[0]['description']}"
            logger.error(f"Mercado Pago respondió {response.status_code} en {method} {path}: {message}")
            raise MercadoPagoError(message, status_code=response.status_code, response=data)

        return data

    def _create(self, payload: dict) -> Dict[str, Any]:
        data = self._request("POST", "/v1/payments", payload, idempotency_key=str(uuid.uuid4()))
        logger.info(f"Cobro {data.get('id')} creado en Mercado Pago con estado {data.get('status')}")
        return self.normalize(data)

    @staticmethod
    def normalize(data: Dict[str, Any]) -> Dict[str, Any]:
        """Extrae de la respuesta los campos que se guardan en Payment."""
        poi = data.get("point_of_interaction") or {}
        transaction_data = poi.get("transaction_data") or {}
        transaction_details = data.get("transaction_details") or {}

        barcode = transaction_data.get("barcode")
        if not barcode and isinstance(data.get("barcode"), dict):
            barcode = data["barcode"].get("content")

        ticket_url = (
            transaction_data.get("ticket_url")
            or transaction_details.get("external_resource_url")
            or data.get("ticket_url")
        )

        mp_id = data.get("id")
        return {
            "id": str(mp_id) if mp_id is not None else None,
            "status": map_status(data.get("status")),
            "status_detail": data.get("status_detail"),
            "qr_code": transaction_data.get("qr_code"),
            "qr_code_base64": transaction_data.get("qr_code_base64"),
            "barcode": barcode,
            "barcode_base64": transaction_data.get("barcode_base64"),
            "ticket_url": ticket_url,
            "due_date": parse_datetime(data.get("date_of_expiration")),
            "transaction_id": str(mp_id) if mp_id is not None else None,
        }

    # ===== COBROS =====

    def _payer(self, email: str, name: str) -> dict:
        first_name, last_name = split_name(name)
        return {"email": email, "first_name": first_name, "last_name": last_name}

    def create_pix(self, *, amount: float, description: str, email: str, name: str, metadata: dict) -> Dict[str, Any]:
        return self._create({
            "transaction_amount": amount,
            "description": description,
            "payment_method_id": "pix",
            "payer": self._payer(email, name),
            "metadata": metadata,
        })

    def create_boleto(self, *, amount: float, description: str, email: str, name: str,
                      metadata: dict, cpf: Optional[str] = None) -> Dict[str, Any]:
        payer = self._payer(email, name)
        payer["identification"] = {"type": "CPF", "number": clean_cpf(cpf)}
        expiration = local_now() + timedelta(days=BOLETO_DAYS_TO_EXPIRE)
        return self._create({
            "transaction_amount": amount,
            "description": description,
            "payment_method_id": "bolbradesco",
            "date_of_expiration": expiration.isoformat(timespec="milliseconds"),
            "payer": payer,
            "metadata": metadata,
        })

    def create_card(self, *, amount: float, description: str, email: str, token: str,
                    metadata: dict, cpf: Optional[str] = None, installments: int = 1) -> Dict[str, Any]:
        """El token se genera en el frontend con el SDK de Mercado Pago."""
        if not token or len(token) < 10:
            raise MercadoPagoError("Token do cartão inválido. Por favor, tente novamente.")
        if installments < 1 or installments > 12:
            raise MercadoPagoError("Número de parcelas inválido.")

        return self._create({
            "transaction_amount": amount,
            "description": description,
            "installments": installments,
            "token": token,
            "payer": {
                "email": email,
                "identification": {"type": "CPF", "number": clean_cpf(cpf)},
            },
            "statement_descriptor": settings.MERCADOPAGO_STATEMENT_DESCRIPTOR,
            "metadata": metadata,
        })

    def get_payment(self, mp_payment_id: str) -> Dict[str, Any]:
        return self.normalize(self._request("GET", f"/v1/payments/{mp_payment_id}"))
