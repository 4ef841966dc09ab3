"""
Tests del módulo de Soporte
"""
from app.core.config import settings


def _support_calls(sent_tasks):
    return [kwargs for name, kwargs in sent_tasks if name.endswith("send_email_task")]


class TestSupportMessage:
    """Envío de mensajes al equipo de soporte"""

    def test_anonymous_message(self, client, sent_tasks):
        response = client.post("/support", json={
            "subject": "Dúvida sobre planos",
            "message": "Gostaria de saber como funciona o plano anual.",
            "name": "Visitante",
            "email": "visitante@example.com",
        })

        assert response.status_code == 200
        assert response.json()["message"] == "Mensagem enviada com sucesso! Entraremos em contato em breve."

        [kwargs] = _support_calls(sent_tasks)
        assert kwargs["to_emails"] == [settings.SUPPORT_EMAIL]
        assert kwargs["subject"] == "[Suporte] Dúvida sobre planos"
        assert kwargs["reply_to"] == "visitante@example.com"
        assert "ID do usuário: Não autenticado" in kwargs["text_content"]

    def test_logged_user_overrides_sender(self, client, owner, auth_headers, sent_tasks):
        client.post("/support", headers=auth_headers(owner), json={
            "subject": "Erro no agendamento",
            "message": "Não consigo criar agendamentos hoje.",
            "name": "Outro Nome",
            "email": "outro@example.com",
        })

        [kwargs] = _support_calls(sent_tasks)
        assert kwargs["reply_to"] == owner.email
        assert "Nome: Maria Souza" in kwargs["text_content"]
        assert f"ID do usuário: {owner.id}" in kwargs["text_content"]

    def test_short_message(self, client, sent_tasks):
        response = client.post("/support", json={
            "subject": "Oi", "message": "curta", "name": "X", "email": "x@example.com",
        })
        assert response.status_code == 422
        assert _support_calls(sent_tasks) == []
