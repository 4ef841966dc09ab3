"""
Tests del módulo de Clientes

Cada owner ve solo su cartera; los empleados no acceden a clientes.
MinIO se reemplaza por un almacenamiento en memoria.
"""
import base64

import pytest
from fastapi import HTTPException

from app.modules.clients.models import Client
from app.modules.clients.storage import ClientPhotoStorage, is_data_uri, is_external_url, photo_storage

VALID_CPF = "529.982.247-25"


@pytest.fixture
def fake_storage(monkeypatch):
    """Guarda las fotos en un dict y firma con una URL fija."""
    saved = {}
    deleted = []

    def save_base64(data_uri, owner_id):
        key = f"clients/{owner_id}/foto{len(saved) + 1}.png"
        saved[key] = data_uri
        return key

    def delete(key):
        if key:
            deleted.append(key)
        return bool(key)

    def url(key, expires=None):
        if not key:
            return None
        return key if is_external_url(key) else f"https://files.test/{key}"

    monkeypatch.setattr(photo_storage, "save_base64", save_base64)
    monkeypatch.setattr(photo_storage, "delete", delete)
    monkeypatch.setattr(photo_storage, "url", url)
    return {"saved": saved, "deleted": deleted}


@pytest.fixture
def make_client(db_session):
    def _make(owner, name="Fernanda Alves", **kwargs):
        client = Client(owner_id=owner.id, name=name, **kwargs)
        db_session.add(client)
        db_session.commit()
        db_session.refresh(client)
        return client

    return _make


class TestClientCrud:
    """CRUD de clientes"""

    def test_create_with_allergies_and_cpf(self, client, owner, auth_headers):
        response = client.post("/clients/", headers=auth_headers(owner), json={
            "name": "Luciana Rocha",
            "phone": "11988887777",
            "email": "luciana@example.com",
            "cpf": VALID_CPF,
            "allergies": ["Amônia", "Látex"],
            "birth_date": "1990-05-17",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["owner_id"] == str(owner.id)
        assert body["allergies"] == ["Amônia", "Látex"]
        assert body["photo_url"] is None

    def test_invalid_cpf(self, client, owner, auth_headers):
        response = client.post("/clients/", headers=auth_headers(owner), json={
            "name": "Luciana", "cpf": "111.111.111-11",
        })
        assert response.status_code == 422

    def test_photo_upload_and_replace(self, client, owner, auth_headers, fake_storage):
        png = "data:image/png;base64," + base64.b64encode(b"fake-png").decode()
        headers = auth_headers(owner)

        created = client.post("/clients/", headers=headers, json={"name": "Com Foto", "photo": png})
        assert created.status_code == 201
        key = f"clients/{owner.id}/foto1.png"
        assert created.json()["photo"] == key
        assert created.json()["photo_url"] == f"https://files.test/{key}"

        client_id = created.json()["id"]
        replaced = client.put(f"/clients/{client_id}", headers=headers, json={"photo": png})
        assert replaced.json()["photo"] == f"clients/{owner.id}/foto2.png"
        assert fake_storage["deleted"] == [key]

    @pytest.mark.parametrize("new_photo", [None, "https://cdn.example.com/nova.jpg"])
    def test_old_photo_removed_when_cleared_or_replaced_by_url(self, client, owner, make_client, auth_headers,
                                                               fake_storage, new_photo):
        key = f"clients/{owner.id}/antiga.png"
        existing = make_client(owner, photo=key)

        response = client.put(f"/clients/{existing.id}", headers=auth_headers(owner), json={"photo": new_photo})

        assert response.status_code == 200
        assert response.json()["photo"] == new_photo
        assert fake_storage["deleted"] == [key]

    def test_unchanged_photo_is_kept(self, client, owner, make_client, auth_headers, fake_storage):
        key = f"clients/{owner.id}/antiga.png"
        existing = make_client(owner, photo=key)

        client.put(f"/clients/{existing.id}", headers=auth_headers(owner), json={"photo": key, "notes": "ok"})

        assert fake_storage["deleted"] == []

    def test_long_photo_url_rejected(self, client, owner, auth_headers, fake_storage):
        response = client.post("/clients/", headers=auth_headers(owner), json={
            "name": "Longa", "photo": "https://cdn.example.com/" + "a" * 500,
        })
        assert response.status_code == 422

    def test_external_photo_url_kept(self, client, owner, auth_headers, fake_storage):
        response = client.post("/clients/", headers=auth_headers(owner), json={
            "name": "Externa", "photo": "https://cdn.example.com/a.jpg",
        })
        assert response.json()["photo_url"] == "https://cdn.example.com/a.jpg"
        assert fake_storage["saved"] == {}

    def test_update_and_delete(self, client, db_session, owner, make_client, auth_headers, fake_storage):
        existing = make_client(owner)
        headers = auth_headers(owner)

        updated = client.put(f"/clients/{existing.id}", headers=headers, json={"notes": "Prefere manhã"})
        assert updated.status_code == 200
        assert updated.json()["notes"] == "Prefere manhã"
        assert updated.json()["name"] == existing.name

        client_id = existing.id
        assert client.delete(f"/clients/{client_id}", headers=headers).status_code == 204
        db_session.expire_all()
        assert db_session.get(Client, client_id) is None


class TestClientScope:
    """Alcance por rol"""

    def test_owner_sees_own_and_search(self, client, owner, other_owner, make_client, auth_headers):
        make_client(owner, name="Beatriz Costa", phone="11911112222")
        make_client(owner, name="Amanda Reis")
        make_client(other_owner, name="Beatriz Outra")

        body = client.get("/clients/", headers=auth_headers(owner)).json()
        assert [c["name"] for c in body["data"]] == ["Amanda Reis", "Beatriz Costa"]

        found = client.get("/clients/", headers=auth_headers(owner), params={"search": "1111"}).json()
        assert [c["name"] for c in found["data"]] == ["Beatriz Costa"]

    def test_employee_gets_empty_list_and_cannot_write(self, client, owner, employee, make_client, auth_headers):
        existing = make_client(owner)
        headers = auth_headers(employee)

        assert client.get("/clients/", headers=headers).json()["total"] == 0

        created = client.post("/clients/", headers=headers, json={"name": "X"})
        assert created.status_code == 403
        assert created.json()["detail"] == "Funcionários não podem criar clientes."

        assert client.put(f"/clients/{existing.id}", headers=headers, json={"name": "Y"}).status_code == 403
        assert client.delete(f"/clients/{existing.id}", headers=headers).status_code == 403

    def test_owner_cannot_view_foreign(self, client, owner, other_owner, make_client, auth_headers):
        foreign = make_client(other_owner)
        assert client.get(f"/clients/{foreign.id}", headers=auth_headers(owner)).status_code == 403

    def test_admin_filters_by_owner(self, client, admin, owner, other_owner, make_client, auth_headers):
        make_client(owner, name="Um")
        make_client(other_owner, name="Dois")
        body = client.get("/clients/", headers=auth_headers(admin), params={"owner_id": str(owner.id)}).json()
        assert [c["name"] for c in body["data"]] == ["Um"]


class TestPhotoStorage:
    """Validaciones del almacenamiento que no llegan a MinIO"""

    def test_disallowed_extension(self):
        storage = ClientPhotoStorage()
        with pytest.raises(HTTPException) as exc_info:
            storage.save_base64("data:image/bmp;base64,AAAA", "owner")
        assert exc_info.value.status_code == 422

    def test_invalid_base64(self):
        storage = ClientPhotoStorage()
        with pytest.raises(HTTPException) as exc_info:
            storage.save_base64("data:image/png;base64,@@@", "owner")
        assert exc_info.value.detail == "Imagem inválida."

    def test_unsupported_data_uri(self):
        storage = ClientPhotoStorage()
        with pytest.raises(HTTPException) as exc_info:
            storage.save_base64("data:image/svg+xml;base64,PHN2Zz4=", "owner")
        assert exc_info.value.status_code == 422
        assert exc_info.value.detail == "Formato de imagem inválido."

    def test_helpers(self):
        assert is_data_uri("data:image/png;base64,AAAA")
        assert not is_data_uri(None)
        assert is_external_url("https://x/y.png")
        assert not is_external_url("clients/1/a.png")
        assert ClientPhotoStorage().url(None) is None
