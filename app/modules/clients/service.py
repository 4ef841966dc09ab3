"""
Servicio de clientes: cada owner gestiona su propia cartera.
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import false, or_
from sqlalchemy.orm import Session

from app.common.pagination import PaginationParams, paginate
from app.modules.auth.models import User
from app.modules.clients.models import Client
from app.modules.clients.schemas import ClientCreate, ClientUpdate
from app.modules.clients.storage import photo_storage, is_data_uri
from app.modules.establishments.access import forbidden

logger = logging.getLogger(__name__)


class ClientService:

    def __init__(self, db: Session):
        self.db = db
        self.storage = photo_storage

    def _with_photo_url(self, client: Client) -> Client:
        client.photo_url = self.storage.url(client.photo)
        return client

    def _get_client_or_404(self, client_id: UUID) -> Client:
        client = self.db.get(Client, client_id)
        if not client:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente não encontrado.")
        return client

    def _ensure_access(self, user: User, client: Client, employee_message: str = "Não autorizado.") -> None:
        if user.is_employee:
            raise forbidden(employee_message)
        if not user.is_admin and client.owner_id != user.id:
            raise forbidden()

    def list_clients(
        self,
        user: User,
        params: PaginationParams,
        search: Optional[str] = None,
        owner_id: Optional[UUID] = None,
    ) -> dict:
        query = self.db.query(Client)

        if user.is_owner:
            query = query.filter(Client.owner_id == user.id)
        elif user.is_employee:
            # Los empleados no acceden a clientes
            query = query.filter(false())
        elif owner_id:
            query = query.filter(Client.owner_id == owner_id)

        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Client.name.ilike(pattern),
                Client.phone.ilike(pattern),
                Client.email.ilike(pattern),
                Client.cpf.ilike(pattern),
            ))

        page = paginate(query.order_by(Client.name.asc(), Client.id.asc()), params)
        page["data"] = [self._with_photo_url(c) for c in page["data"]]
        return page

    def create_client(self, user: User, data: ClientCreate) -> Client:
        if user.is_employee:
            raise forbidden("Funcionários não podem criar clientes.")

        client_data = data.model_dump()
        if is_data_uri(client_data.get("photo")):
            client_data["photo"] = self.storage.save_base64(client_data["photo"], user.id)

        client = Client(**client_data, owner_id=user.id)
        self.db.add(client)
        self.db.commit()
        self.db.refresh(client)
        logger.info(f"Client created: {client.id} (owner {user.id})")
        return self._with_photo_url(client)

    def get_client(self, user: User, client_id: UUID) -> Client:
        client = self._get_client_or_404(client_id)
        self._ensure_access(user, client)
        return self._with_photo_url(client)

    def update_client(self, user: User, client_id: UUID, data: ClientUpdate) -> Client:
        client = self._get_client_or_404(client_id)
        self._ensure_access(user, client, "Funcionários não podem editar clientes.")

        update_data = data.model_dump(exclude_unset=True)
        old_photo = client.photo
        if is_data_uri(update_data.get("photo")):
            update_data["photo"] = self.storage.save_base64(update_data["photo"], client.owner_id)

        for field, value in update_data.items():
            if field == "name" and value is None:
                continue
            setattr(client, field, value)

        self.db.commit()
        self.db.refresh(client)
        if "photo" in update_data and update_data["photo"] != old_photo:
            self.storage.delete(old_photo)
        return self._with_photo_url(client)

    def delete_client(self, user: User, client_id: UUID) -> None:
        client = self._get_client_or_404(client_id)
        self._ensure_access(user, client, "Funcionários não podem excluir clientes.")

        self.storage.delete(client.photo)
        self.db.delete(client)
        self.db.commit()
