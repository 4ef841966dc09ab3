"""
Tests del servicio de email y sus tareas
"""
import pytest

from app.modules.email.service import EmailService, email_service
from app.modules.email.tasks import send_scheduling_reminder_task, send_status_change_task

SCHEDULING = {
    "client_name": "Ana Paula",
    "service_name": "Corte",
    "establishment_name": "Salão Central",
    "date": "11/03/2026",
    "time": "10:00",
}


@pytest.fixture
def outbox(monkeypatch):
    sent = []

    def fake_send(to_emails, subject, html_content=None, text_content=None, reply_to=None):
        sent.append({"to": to_emails, "subject": subject, "html": html_content})
        return True

    monkeypatch.setattr(email_service, "send_email", fake_send)
    return sent


class TestTemplates:

    def test_status_change_uses_labels(self, outbox):
        result = send_status_change_task.apply(kwargs={
            "owner_email": "dona@example.com",
            "owner_name": "Maria",
            "scheduling": SCHEDULING,
            "old_status": "confirmed",
            "new_status": "completed",
        }).get()

        assert result["status"] == "success"
        [mail] = outbox
        assert mail["to"] == ["dona@example.com"]
        assert "Confirmado" in mail["html"]
        assert "Concluído" in mail["html"]

    def test_reminder_time_label(self, outbox):
        send_scheduling_reminder_task.apply(kwargs={
            "owner_email": "dona@example.com",
            "owner_name": "Maria",
            "scheduling": SCHEDULING,
            "reminder_type": "1h",
        }).get()

        assert "em 1 hora" in outbox[0]["html"]

    def test_autoescape(self):
        html = EmailService().render_template("welcome.html", {"user_name": "<b>x</b>", "dashboard_url": "#"})
        assert "&lt;b&gt;x&lt;/b&gt;" in html


class TestBuildMessage:

    def test_headers_and_parts(self):
        message = EmailService().build_message(
            ["a@example.com", "b@example.com"], "Assunto",
            html_content="<p>oi</p>", text_content="oi", reply_to="c@example.com"
        )
        assert message["To"] == "a@example.com, b@example.com"
        assert message["Reply-To"] == "c@example.com"
        assert [part.get_content_type() for part in message.get_payload()] == ["text/plain", "text/html"]

    def test_requires_content(self):
        with pytest.raises(ValueError):
            EmailService().build_message(["a@example.com"], "Vazio")

    def test_no_recipients(self):
        assert EmailService().send_email([], "Assunto", text_content="oi") is False
