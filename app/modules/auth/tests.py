"""
Tests del módulo de autenticación

Cubre registro con plan gratuito, login/logout con revocación de token,
verificación de email y recuperación de contraseña.
"""
from datetime import timedelta
from urllib.parse import parse_qs, urlparse

from app.common.dates import now_utc
from app.modules.auth.models import EmailVerificationToken, PasswordResetToken, User, UserRole
from app.modules.plans.models import UserPlan


def _token_from(sent_tasks, task_suffix: str, url_key: str) -> str:
    name, kwargs = [t for t in sent_tasks if t[0].endswith(task_suffix)][-1]
    return parse_qs(urlparse(kwargs[url_key]).query)["token"][0]


class TestRegisterAndLogin:
    """Registro, login, me y logout"""

    def test_register_owner_gets_free_plan(self, client, db_session, free_plan, sent_tasks):
        response = client.post("/auth/register", json={
            "name": "Ana Paula",
            "email": "ana@example.com",
            "password": "segredo123",
            "role": "owner",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["token"]
        assert body["user"]["email_verified_at"] is None

        user = db_session.query(User).filter(User.email == "ana@example.com").one()
        user_plan = db_session.query(UserPlan).filter(UserPlan.user_id == user.id).one()
        assert user_plan.plan_id == free_plan.id
        assert user_plan.ends_at is None

        assert any(name.endswith("send_verification_email_task") for name, _ in sent_tasks)

    def test_register_employee_without_plan(self, client, db_session, free_plan):
        response = client.post("/auth/register", json={
            "name": "Pedro", "email": "pedro@example.com", "password": "segredo123", "role": "employee",
        })
        assert response.status_code == 201
        user = db_session.query(User).filter(User.email == "pedro@example.com").one()
        assert db_session.query(UserPlan).filter(UserPlan.user_id == user.id).count() == 0

    def test_register_duplicate_email(self, client, owner):
        response = client.post("/auth/register", json={
            "name": "Outra", "email": owner.email, "password": "segredo123", "role": "owner",
        })
        assert response.status_code == 422

    def test_register_short_password(self, client):
        response = client.post("/auth/register", json={
            "name": "Curta", "email": "curta@example.com", "password": "123", "role": "owner",
        })
        assert response.status_code == 422

    def test_login_and_me(self, client, owner, establishment):
        response = client.post("/auth/login", json={"email": owner.email, "password": "password123"})
        assert response.status_code == 200
        token = response.json()["token"]

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == owner.email
        assert [e["name"] for e in me.json()["establishments"]] == [establishment.name]

    def test_login_invalid_credentials(self, client, owner):
        response = client.post("/auth/login", json={"email": owner.email, "password": "errada123"})
        assert response.status_code == 401

    def test_login_inactive_user(self, client, db_session, owner):
        owner.is_active = False
        db_session.commit()
        response = client.post("/auth/login", json={"email": owner.email, "password": "password123"})
        assert response.status_code == 403

    def test_logout_revokes_token(self, client, owner, auth_headers):
        headers = auth_headers(owner)
        assert client.post("/auth/logout", headers=headers).status_code == 204
        assert client.get("/auth/me", headers=headers).status_code == 401

    def test_me_requires_token(self, client):
        assert client.get("/auth/me").status_code == 401


class TestEmailVerification:
    """Verificación de email"""

    def test_verify_email_flow(self, client, db_session, sent_tasks):
        client.post("/auth/register", json={
            "name": "Bia", "email": "bia@example.com", "password": "segredo123", "role": "owner",
        })
        token = _token_from(sent_tasks, "send_verification_email_task", "verification_url")

        response = client.post("/auth/verify-email", json={"token": token, "email": "bia@example.com"})
        assert response.status_code == 200
        assert response.json()["verified_at"] is not None
        assert any(name.endswith("send_welcome_email_task") for name, _ in sent_tasks)
        assert db_session.get(EmailVerificationToken, "bia@example.com") is None

    def test_verify_email_wrong_token(self, client, sent_tasks):
        client.post("/auth/register", json={
            "name": "Bia", "email": "bia@example.com", "password": "segredo123", "role": "owner",
        })
        response = client.post("/auth/verify-email", json={"token": "x" * 64, "email": "bia@example.com"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Token inválido."

    def test_verify_email_expired(self, client, db_session, sent_tasks):
        client.post("/auth/register", json={
            "name": "Bia", "email": "bia@example.com", "password": "segredo123", "role": "owner",
        })
        token = _token_from(sent_tasks, "send_verification_email_task", "verification_url")
        record = db_session.get(EmailVerificationToken, "bia@example.com")
        record.created_at = now_utc() - timedelta(hours=25)
        db_session.commit()

        response = client.post("/auth/verify-email", json={"token": token, "email": "bia@example.com"})
        assert response.status_code == 400
        db_session.expire_all()
        assert db_session.get(EmailVerificationToken, "bia@example.com") is None

    def test_resend_verification_unknown_email(self, client, sent_tasks):
        response = client.post("/auth/resend-verification", json={"email": "ninguem@example.com"})
        assert response.status_code == 200
        assert sent_tasks == []

    def test_resend_verification_already_verified(self, client, db_session, owner):
        owner.email_verified_at = now_utc()
        db_session.commit()
        response = client.post("/auth/resend-verification", json={"email": owner.email})
        assert response.json()["message"] == "Este email já foi verificado."


class TestPasswordReset:
    """Recuperación de contraseña"""

    def test_forgot_and_reset_password(self, client, db_session, owner, sent_tasks):
        assert client.post("/auth/forgot-password", json={"email": owner.email}).status_code == 200
        token = _token_from(sent_tasks, "send_password_reset_email_task", "reset_url")

        response = client.post("/auth/reset-password", json={
            "token": token,
            "email": owner.email,
            "password": "novaSenha123",
            "password_confirmation": "novaSenha123",
        })
        assert response.status_code == 200
        assert db_session.get(PasswordResetToken, owner.email) is None

        login = client.post("/auth/login", json={"email": owner.email, "password": "novaSenha123"})
        assert login.status_code == 200

    def test_reset_password_without_request(self, client, owner):
        response = client.post("/auth/reset-password", json={
            "token": "abc", "email": owner.email, "password": "novaSenha123", "password_confirmation": "novaSenha123",
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Token inválido ou expirado."

    def test_reset_password_confirmation_mismatch(self, client, owner):
        response = client.post("/auth/reset-password", json={
            "token": "abc", "email": owner.email, "password": "novaSenha123", "password_confirmation": "outra12345",
        })
        assert response.status_code == 422

    def test_forgot_password_unknown_email(self, client, sent_tasks):
        response = client.post("/auth/forgot-password", json={"email": "ninguem@example.com"})
        assert response.status_code == 200
        assert sent_tasks == []


class TestUsersAdmin:
    """CRUD de usuarios (solo admin)"""

    def test_owner_cannot_list_users(self, client, owner, auth_headers):
        assert client.get("/users/", headers=auth_headers(owner)).status_code == 403

    def test_admin_crud(self, client, admin, owner, auth_headers):
        headers = auth_headers(admin)

        listing = client.get("/users/", headers=headers, params={"role": "owner"})
        assert listing.status_code == 200
        assert listing.json()["total"] == 1

        created = client.post("/users/", headers=headers, json={
            "name": "Novo", "email": "novo@example.com", "password": "segredo123", "role": UserRole.EMPLOYEE.value,
        })
        assert created.status_code == 201
        user_id = created.json()["id"]

        duplicate = client.put(f"/users/{user_id}", headers=headers, json={"email": owner.email})
        assert duplicate.status_code == 422

        updated = client.put(f"/users/{user_id}", headers=headers, json={"name": "Renomeado"})
        assert updated.json()["name"] == "Renomeado"

        assert client.delete(f"/users/{user_id}", headers=headers).status_code == 204
        assert client.get(f"/users/{user_id}", headers=headers).status_code == 404
