"""
Tests del módulo de Pagos (Mercado Pago)

El gateway se reemplaza por un doble en memoria; no hay llamadas HTTP.
"""
import hashlib
import hmac
import inspect

import pytest

from app.core.config import settings
from app.modules.auth.models import UserRole
from app.modules.payments import router as payment_router_module
from app.modules.payments import service as payment_service_module
from app.modules.payments.mercadopago import (
    MercadoPagoError, MercadoPagoService, clean_cpf, map_status, verify_signature
)
from app.modules.payments.models import Payment
from app.modules.plans.models import UserPlan
from app.modules.plans.service import PlanService


class FakeGateway:
    """Registra los cobros y responde con el estado configurado."""

    def __init__(self, status="pending", available=True, error=None):
        self.status = status
        self.is_available = available
        self.error = error
        self.calls = []

    def _result(self, **extra):
        if self.error:
            raise MercadoPagoError(self.error)
        result = {
            "id": "123456789",
            "status": self.status,
            "transaction_id": "123456789",
        }
        result.update(extra)
        return result

    def create_pix(self, **kwargs):
        self.calls.append(("pix", kwargs))
        return self._result(qr_code="00020126...", qr_code_base64="iVBORw0KGgo=")

    def create_boleto(self, **kwargs):
        self.calls.append(("boleto", kwargs))
        return self._result(barcode="23790000", ticket_url="https://mp.test/boleto/1")

    def create_card(self, **kwargs):
        self.calls.append(("card", kwargs))
        return self._result()

    def get_payment(self, mp_payment_id):
        self.calls.append(("get", mp_payment_id))
        return self._result()


@pytest.fixture
def gateway(monkeypatch):
    fake = FakeGateway()
    monkeypatch.setattr(payment_service_module, "MercadoPagoService", lambda: fake)
    return fake


@pytest.fixture
def buyer(make_user):
    return make_user(UserRole.OWNER, name="Lucas Pereira")


@pytest.fixture
def paid_plan(make_plan):
    return make_plan(name="Profissional", price="79.90", max_establishments=3)


def _signature(secret, data_id, request_id, ts="1700000000"):
    manifest = f"id:{data_id};request-id:{request_id};ts:{ts};"
    v1 = hmac.new(secret.encode(), manifest.encode(), hashlib.sha256).hexdigest()
    return f"ts={ts},v1={v1}"


class TestProcessPayment:
    """Creación de cobros"""

    def test_pix_pending(self, client, db_session, buyer, paid_plan, gateway, auth_headers):
        response = client.post("/payments/process", headers=auth_headers(buyer), json={
            "plan_id": str(paid_plan.id), "payment_method": "pix",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["qr_code"] == "00020126..."
        assert body["mercadopago_payment_id"] == "123456789"
        assert body["user_plan_id"] is None

        method, kwargs = gateway.calls[0]
        assert method == "pix"
        assert kwargs["amount"] == 79.9
        assert kwargs["description"] == "Plano Profissional"
        assert kwargs["metadata"]["payment_id"] == body["id"]

    def test_boleto_sets_payment_url(self, client, buyer, paid_plan, gateway, auth_headers):
        response = client.post("/payments/process", headers=auth_headers(buyer), json={
            "plan_id": str(paid_plan.id), "payment_method": "boleto", "cpf": "529.982.247-25",
        })
        assert response.json()["payment_url"] == "https://mp.test/boleto/1"
        assert gateway.calls[0][1]["cpf"] == "529.982.247-25"

    def test_card_approved_activates_plan(self, client, db_session, buyer, paid_plan, gateway, auth_headers):
        gateway.status = "approved"
        response = client.post("/payments/process", headers=auth_headers(buyer), json={
            "plan_id": str(paid_plan.id),
            "payment_method": "credit_card",
            "installments": 3,
            "credit_card": {"token": "card-token-123456", "cpf": "52998224725"},
        })

        body = response.json()
        assert body["status"] == "approved"
        assert body["user_plan_id"] is not None
        assert body["paid_at"] is not None
        assert gateway.calls[0][1]["installments"] == 3

        current = PlanService(db_session).get_current_plan(buyer)
        assert current.plan_id == paid_plan.id

    def test_card_without_data(self, client, buyer, paid_plan, gateway, auth_headers):
        response = client.post("/payments/process", headers=auth_headers(buyer), json={
            "plan_id": str(paid_plan.id), "payment_method": "credit_card",
        })
        assert response.status_code == 422
        assert gateway.calls == []

    def test_gateway_error_leaves_no_payment(self, client, db_session, buyer, paid_plan, gateway, auth_headers):
        gateway.error = "Cartão recusado"
        response = client.post("/payments/process", headers=auth_headers(buyer), json={
            "plan_id": str(paid_plan.id), "payment_method": "pix",
        })

        assert response.status_code == 400
        assert response.json()["detail"] == "Erro ao processar pagamento: Cartão recusado"
        assert db_session.query(Payment).count() == 0

    def test_gateway_not_configured(self, client, buyer, paid_plan, gateway, auth_headers):
        gateway.is_available = False
        response = client.post("/payments/process", headers=auth_headers(buyer), json={
            "plan_id": str(paid_plan.id), "payment_method": "pix",
        })
        assert response.status_code == 503

    def test_inactive_plan(self, client, buyer, make_plan, gateway, auth_headers):
        plan = make_plan(name="Antigo", is_active=False)
        response = client.post("/payments/process", headers=auth_headers(buyer), json={
            "plan_id": str(plan.id), "payment_method": "pix",
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Este plano não está disponível."


class TestPaymentStatus:

    @pytest.fixture
    def pending_payment(self, client, buyer, paid_plan, gateway, auth_headers):
        response = client.post("/payments/process", headers=auth_headers(buyer), json={
            "plan_id": str(paid_plan.id), "payment_method": "pix",
        })
        return response.json()["id"]

    def test_refresh_approves(self, client, db_session, buyer, gateway, pending_payment, auth_headers):
        gateway.status = "approved"

        response = client.get(f"/payments/{pending_payment}/status", headers=auth_headers(buyer))

        assert response.json()["status"] == "approved"
        assert db_session.query(UserPlan).filter(UserPlan.user_id == buyer.id).count() == 1

    def test_gateway_failure_returns_stored_state(self, client, buyer, gateway, pending_payment, auth_headers):
        gateway.error = "timeout"
        response = client.get(f"/payments/{pending_payment}/status", headers=auth_headers(buyer))
        assert response.status_code == 200
        assert response.json()["status"] == "pending"

    def test_other_user_gets_404(self, client, other_owner, pending_payment, auth_headers):
        response = client.get(f"/payments/{pending_payment}/status", headers=auth_headers(other_owner))
        assert response.status_code == 404
        assert response.json()["detail"] == "Pagamento não encontrado."


class TestWebhook:
    """Notificaciones de Mercado Pago"""

    @pytest.fixture
    def pending_payment(self, client, buyer, paid_plan, gateway, auth_headers):
        client.post("/payments/process", headers=auth_headers(buyer), json={
            "plan_id": str(paid_plan.id), "payment_method": "pix",
        })

    def test_approval_activates_plan(self, client, db_session, buyer, paid_plan, gateway, pending_payment):
        gateway.status = "approved"

        response = client.post("/payments/webhook", json={"type": "payment", "data": {"id": "123456789"}})

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        db_session.expire_all()
        payment = db_session.query(Payment).one()
        assert payment.status == "approved"
        assert payment.user_plan_id is not None

    def test_query_params_format(self, client, gateway, pending_payment):
        gateway.status = "rejected"
        response = client.post("/payments/webhook?type=payment&data.id=123456789")
        assert response.json() == {"status": "ok", "message": None}

    def test_other_events_ignored(self, client, gateway):
        response = client.post("/payments/webhook", json={"type": "plan", "data": {"id": "1"}})
        assert response.json()["message"] == "Evento ignorado"

    def test_missing_id(self, client, gateway):
        response = client.post("/payments/webhook", json={"type": "payment"})
        assert response.status_code == 400

    def test_unknown_payment(self, client, gateway):
        response = client.post("/payments/webhook", json={"type": "payment", "data": {"id": "999"}})
        assert response.json()["message"] == "Pagamento não encontrado"

    def test_gateway_error_still_200(self, client, gateway, pending_payment):
        gateway.error = "boom"
        response = client.post("/payments/webhook", json={"type": "payment", "data": {"id": "123456789"}})
        assert response.status_code == 200
        assert response.json()["message"] == "Erro ao processar, mas webhook recebido"

    def test_unexpected_error_still_200(self, client, db_session, gateway, pending_payment, monkeypatch):
        def broken_activate(self, payment):
            raise AttributeError("plan")

        monkeypatch.setattr(payment_service_module.PaymentService, "_activate", broken_activate)
        gateway.status = "approved"

        response = client.post("/payments/webhook", json={"type": "payment", "data": {"id": "123456789"}})

        assert response.status_code == 200
        assert response.json()["message"] == "Erro ao processar, mas webhook recebido"
        db_session.expire_all()
        payment = db_session.query(Payment).one()
        assert payment.status == "pending"
        assert payment.user_plan_id is None

    def test_signature_required_when_secret_set(self, client, gateway, pending_payment, monkeypatch):
        monkeypatch.setattr(settings, "MERCADOPAGO_WEBHOOK_SECRET", "s3cret")
        body = {"type": "payment", "data": {"id": "123456789"}}

        assert client.post("/payments/webhook", json=body).status_code == 401

        bad = client.post("/payments/webhook", json=body, headers={
            "x-signature": _signature("wrong", "123456789", "req-1"), "x-request-id": "req-1",
        })
        assert bad.status_code == 401

        good = client.post("/payments/webhook", json=body, headers={
            "x-signature": _signature("s3cret", "123456789", "req-1"), "x-request-id": "req-1",
        })
        assert good.status_code == 200


class TestMercadoPagoHelpers:

    def test_normalize_pix_response(self):
        result = MercadoPagoService.normalize({
            "id": 42,
            "status": "in_process",
            "date_of_expiration": "2026-03-14T23:59:59.000-03:00",
            "point_of_interaction": {"transaction_data": {"qr_code": "abc", "qr_code_base64": "Zm9v"}},
        })
        assert result["id"] == "42"
        assert result["status"] == "processing"
        assert result["qr_code"] == "abc"
        assert result["due_date"].day == 14

    def test_normalize_boleto_response(self):
        result = MercadoPagoService.normalize({
            "id": 7,
            "status": "pending",
            "barcode": {"content": "2379"},
            "transaction_details": {"external_resource_url": "https://mp.test/b"},
        })
        assert result["barcode"] == "2379"
        assert result["ticket_url"] == "https://mp.test/b"

    def test_map_status_defaults_to_pending(self):
        assert map_status("charged_back") == "rejected"
        assert map_status("desconhecido") == "pending"
        assert map_status(None) == "pending"

    def test_clean_cpf(self):
        assert clean_cpf("529.982.247-25") == "52998224725"
        assert clean_cpf("123") == "00000000000"

    def test_verify_signature(self):
        header = _signature("s3cret", "55", "req-9")
        assert verify_signature("s3cret", header, "req-9", "55")
        assert not verify_signature("s3cret", header, "req-9", "56")
        assert not verify_signature("s3cret", "v1=abc", "req-9", "55")

    def test_card_token_validated_before_request(self):
        gateway = MercadoPagoService(access_token="TEST-token")
        with pytest.raises(MercadoPagoError):
            gateway.create_card(amount=10.0, description="x", email="a@b.com", token="short", metadata={})
        with pytest.raises(MercadoPagoError):
            gateway.create_card(
                amount=10.0, description="x", email="a@b.com", token="long-enough-token", metadata={}, installments=13
            )

    def test_unconfigured_gateway(self):
        gateway = MercadoPagoService(access_token="")
        assert not gateway.is_available
        with pytest.raises(MercadoPagoError):
            gateway.get_payment("1")


class TestGatewayHandlers:
    """Los endpoints que llaman al gateway (httpx síncrono) corren en el threadpool."""

    @pytest.mark.parametrize("handler", ["process_payment", "get_payment_status", "mercadopago_webhook"])
    def test_handlers_are_sync(self, handler):
        assert not inspect.iscoroutinefunction(getattr(payment_router_module, handler))
