"""
Tests del módulo de Agendamientos
"""
from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

from app.modules.commissions.models import Commission
from app.modules.sales.models import Sale
from app.modules.schedulings.models import Scheduling, SchedulingStatus
from app.modules.schedulings import tasks as reminder_tasks
from app.modules.schedulings.tasks import dispatch_reminders, due_schedulings, send_scheduling_reminders

DAY = "2026-03-11"


def _task_names(sent_tasks):
    return [name.rsplit(".", 1)[-1] for name, _ in sent_tasks]


@pytest.fixture
def make_scheduling(db_session):
    def _make(service, scheduled_time="10:00", scheduled_date=date(2026, 3, 11),
              status=SchedulingStatus.PENDING, client_name="Ana Paula"):
        scheduling = Scheduling(
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            service_id=service.id,
            establishment_id=service.establishment_id,
            client_name=client_name,
            status=status.value,
        )
        db_session.add(scheduling)
        db_session.commit()
        db_session.refresh(scheduling)
        return scheduling

    return _make


def _payload(service, scheduled_time="10:00", **extra):
    payload = {
        "scheduled_date": DAY,
        "scheduled_time": scheduled_time,
        "service_id": str(service.id),
        "establishment_id": str(service.establishment_id),
        "client_name": "Ana Paula",
    }
    payload.update(extra)
    return payload


class TestSchedulingCreate:
    """Alta de agendamientos"""

    def test_create_notifies_owner(self, client, owner, service, auth_headers, sent_tasks):
        response = client.post("/schedulings/", headers=auth_headers(owner), json=_payload(service))

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["service"]["name"] == "Corte"
        assert "send_scheduling_confirmation_task" in _task_names(sent_tasks)

        _, kwargs = sent_tasks[-1]
        assert kwargs["owner_email"] == owner.email
        assert kwargs["scheduling"]["date"] == "11/03/2026"

    def test_client_name_or_id_required(self, client, owner, service, auth_headers):
        payload = _payload(service)
        payload.pop("client_name")
        assert client.post("/schedulings/", headers=auth_headers(owner), json=payload).status_code == 422

    def test_invalid_time_format(self, client, owner, service, auth_headers):
        response = client.post("/schedulings/", headers=auth_headers(owner), json=_payload(service, "25:00"))
        assert response.status_code == 422

    def test_service_from_other_establishment(self, client, owner, service, make_establishment, auth_headers):
        other = make_establishment(owner, name="Filial")
        payload = _payload(service, establishment_id=str(other.id))
        response = client.post("/schedulings/", headers=auth_headers(owner), json=payload)
        assert response.status_code == 422
        assert response.json()["detail"] == "O serviço selecionado não pertence ao estabelecimento informado."

    def test_foreign_client_is_not_linked(self, client, db_session, owner, other_owner, service, auth_headers):
        from app.modules.clients.models import Client

        foreign = Client(owner_id=other_owner.id, name="Cliente Alheia")
        db_session.add(foreign)
        db_session.commit()

        response = client.post(
            "/schedulings/", headers=auth_headers(owner), json=_payload(service, client_id=str(foreign.id))
        )
        assert response.status_code == 201
        assert response.json()["client_id"] is None
        assert response.json()["client_name"] == "Ana Paula"

    def test_employee_outside_establishment(self, client, make_user, service, auth_headers):
        from app.modules.auth.models import UserRole

        outsider = make_user(UserRole.EMPLOYEE)
        response = client.post("/schedulings/", headers=auth_headers(outsider), json=_payload(service))
        assert response.status_code == 403
        assert response.json()["detail"] == "Você não trabalha neste estabelecimento."


class TestSlotValidation:
    """Conflictos de horario"""

    def test_same_service_same_time(self, client, owner, service, make_scheduling, auth_headers):
        make_scheduling(service, "10:00")
        response = client.post("/schedulings/", headers=auth_headers(owner), json=_payload(service, "10:00"))
        assert response.status_code == 422
        assert response.json()["detail"] == "Já existe um agendamento para este serviço neste horário."

    def test_same_employee_overlap(self, client, owner, employee, establishment, service,
                                   make_service, make_scheduling, auth_headers):
        make_scheduling(service, "10:00")
        coloracao = make_service(establishment, name="Coloração", user=employee)

        response = client.post("/schedulings/", headers=auth_headers(owner), json=_payload(coloracao, "10:30"))
        assert response.status_code == 422
        assert response.json()["detail"] == "Este horário conflita com outro agendamento do mesmo funcionário."

    def test_other_employee_can_overlap(self, client, owner, establishment, service, make_user,
                                        make_service, make_scheduling, auth_headers):
        from app.modules.auth.models import UserRole

        make_scheduling(service, "10:00")
        other = make_user(UserRole.EMPLOYEE)
        manicure = make_service(establishment, name="Manicure", user=other)

        response = client.post("/schedulings/", headers=auth_headers(owner), json=_payload(manicure, "10:30"))
        assert response.status_code == 201

    def test_unassigned_service_blocks_establishment(self, client, owner, establishment, service,
                                                     make_service, make_scheduling, auth_headers):
        make_scheduling(service, "10:00")
        escova = make_service(establishment, name="Escova")

        response = client.post("/schedulings/", headers=auth_headers(owner), json=_payload(escova, "09:30"))
        assert response.status_code == 422
        assert response.json()["detail"] == "Este horário conflita com outro agendamento no estabelecimento."

    def test_adjacent_hour_and_cancelled_are_free(self, client, owner, establishment, service,
                                                  make_service, make_scheduling, auth_headers):
        make_scheduling(service, "10:00")
        make_scheduling(service, "14:00", status=SchedulingStatus.CANCELLED)
        escova = make_service(establishment, name="Escova")
        headers = auth_headers(owner)

        assert client.post("/schedulings/", headers=headers, json=_payload(escova, "11:00")).status_code == 201
        assert client.post("/schedulings/", headers=headers, json=_payload(service, "14:00")).status_code == 201

    def test_update_ignores_itself(self, client, owner, service, make_scheduling, auth_headers):
        existing = make_scheduling(service, "10:00")
        response = client.put(
            f"/schedulings/{existing.id}", headers=auth_headers(owner), json={"scheduled_time": "10:00"}
        )
        assert response.status_code == 200


class TestSchedulingUpdate:
    """Cambios de estado"""

    def test_completion_creates_sale_and_commission(self, client, db_session, owner, employee, service,
                                                    make_scheduling, auth_headers, sent_tasks):
        existing = make_scheduling(service, status=SchedulingStatus.CONFIRMED)

        response = client.put(
            f"/schedulings/{existing.id}", headers=auth_headers(owner), json={"status": "completed"}
        )

        assert response.status_code == 200
        sale = db_session.query(Sale).filter(Sale.scheduling_id == existing.id).one()
        assert sale.amount == Decimal("50.00")
        assert sale.user_id == employee.id
        assert sale.payment_method == "pix"
        assert sale.status == "pending"
        assert sale.sale_date == date(2026, 3, 11)

        commission = db_session.query(Commission).filter(Commission.sale_id == sale.id).one()
        assert commission.user_id == employee.id
        assert commission.amount == Decimal("5.00")

        assert "send_status_change_task" in _task_names(sent_tasks)
        _, kwargs = sent_tasks[-1]
        assert kwargs["old_status"] == "confirmed"
        assert kwargs["new_status"] == "completed"

    def test_completing_twice_creates_one_sale(self, client, db_session, owner, service,
                                               make_scheduling, auth_headers):
        existing = make_scheduling(service)
        headers = auth_headers(owner)
        client.put(f"/schedulings/{existing.id}", headers=headers, json={"status": "completed"})
        client.put(f"/schedulings/{existing.id}", headers=headers, json={"status": "cancelled"})
        client.put(f"/schedulings/{existing.id}", headers=headers, json={"status": "completed"})

        assert db_session.query(Sale).filter(Sale.scheduling_id == existing.id).count() == 1

    def test_client_can_be_unlinked(self, client, db_session, owner, service, make_scheduling, auth_headers):
        from app.modules.clients.models import Client

        linked = Client(owner_id=owner.id, name="Beatriz Lima")
        db_session.add(linked)
        db_session.commit()
        existing = make_scheduling(service)
        headers = auth_headers(owner)

        response = client.put(f"/schedulings/{existing.id}", headers=headers, json={"client_id": str(linked.id)})
        assert response.json()["client_id"] == str(linked.id)
        assert response.json()["client_name"] == "Beatriz Lima"

        response = client.put(f"/schedulings/{existing.id}", headers=headers, json={"client_id": None})
        assert response.status_code == 200
        assert response.json()["client_id"] is None
        assert response.json()["client_name"] == "Beatriz Lima"

    def test_update_without_status_keeps_it(self, client, owner, service, make_scheduling,
                                            auth_headers, sent_tasks):
        existing = make_scheduling(service, status=SchedulingStatus.CONFIRMED)
        response = client.put(
            f"/schedulings/{existing.id}", headers=auth_headers(owner), json={"client_name": "Outra"}
        )
        assert response.json()["status"] == "confirmed"
        assert "send_status_change_task" not in _task_names(sent_tasks)


class TestSchedulingList:

    def test_ordering_and_date_filters(self, client, owner, service, make_scheduling, auth_headers):
        make_scheduling(service, "15:00")
        make_scheduling(service, "09:00")
        make_scheduling(service, "09:00", scheduled_date=date(2026, 3, 12))

        body = client.get(
            "/schedulings/", headers=auth_headers(owner), params={"from": DAY, "to": DAY}
        ).json()
        assert [s["scheduled_time"] for s in body["data"]] == ["09:00", "15:00"]

    def test_foreign_owner_sees_nothing(self, client, other_owner, service, make_scheduling, auth_headers):
        existing = make_scheduling(service)
        headers = auth_headers(other_owner)
        assert client.get("/schedulings/", headers=headers).json()["total"] == 0
        assert client.get(f"/schedulings/{existing.id}", headers=headers).status_code == 403


class TestReminders:
    """Recordatorios de 24h y 1h"""

    def test_due_window(self, db_session, service, make_scheduling):
        inside = make_scheduling(service, "09:30", status=SchedulingStatus.CONFIRMED)
        make_scheduling(service, "11:30", status=SchedulingStatus.CONFIRMED)
        make_scheduling(service, "09:00", status=SchedulingStatus.PENDING)

        due = due_schedulings(db_session, "24h", now=datetime(2026, 3, 10, 9, 0))
        assert [s.id for s in due] == [inside.id]

    def test_window_clamped_at_midnight(self, db_session, service, make_scheduling):
        early = make_scheduling(service, "00:10", scheduled_date=date(2026, 3, 11),
                                status=SchedulingStatus.CONFIRMED)

        due = due_schedulings(db_session, "1h", now=datetime(2026, 3, 10, 23, 30))
        assert [s.id for s in due] == [early.id]

    def test_dispatch_sends_to_owner(self, db_session, owner, service, make_scheduling, sent_tasks):
        make_scheduling(service, "10:00", status=SchedulingStatus.CONFIRMED)

        sent = dispatch_reminders(db_session, "1h", now=datetime(2026, 3, 11, 9, 0))

        assert sent == 1
        name, kwargs = sent_tasks[-1]
        assert name.endswith("send_scheduling_reminder_task")
        assert kwargs["owner_email"] == owner.email
        assert kwargs["reminder_type"] == "1h"

    @pytest.fixture
    def task_session(self, db_session, monkeypatch):
        monkeypatch.setattr(reminder_tasks, "SessionLocal", sessionmaker(bind=db_session.get_bind()))
        monkeypatch.setattr(reminder_tasks, "local_now", lambda: datetime(2026, 3, 10, 10, 0))

    def test_task_sends_24h_reminders(self, service, make_scheduling, task_session, sent_tasks):
        make_scheduling(service, "10:30", status=SchedulingStatus.CONFIRMED)
        make_scheduling(service, "15:00", status=SchedulingStatus.CONFIRMED)

        result = send_scheduling_reminders.apply(args=("24h",)).get()

        assert result == {"status": "success", "type": "24h", "sent": 1}
        assert _task_names(sent_tasks) == ["send_scheduling_reminder_task"]

    def test_task_without_due_schedulings(self, service, make_scheduling, task_session, sent_tasks):
        make_scheduling(service, "10:30", status=SchedulingStatus.CONFIRMED)

        result = send_scheduling_reminders.apply(args=("1h",)).get()

        assert result == {"status": "success", "type": "1h", "sent": 0}
        assert sent_tasks == []

    def test_task_rejects_unknown_type(self, task_session, sent_tasks):
        result = send_scheduling_reminders.apply(args=("2h",)).get()

        assert result["status"] == "error"
        assert result["message"] == "Tipo inválido. Use 24h ou 1h."
        assert sent_tasks == []
