"""
Almacenamiento de fotos de clientes en MinIO
"""
import base64
import binascii
import io
import logging
import re
from datetime import timedelta
from typing import Optional
from uuid import UUID, uuid4

from fastapi import HTTPException, status
from minio import Minio
from minio.error import S3Error

from app.core.config import settings

logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(r"^data:image/(\w+);base64,")


def is_data_uri(value: Optional[str]) -> bool:
    return bool(value) and value.startswith("data:image")


def is_external_url(value: str) -> bool:
    return value.startswith(("http://", "https://", "data:image"))


class ClientPhotoStorage:
    """Sube, borra y firma fotos de clientes. El cliente MinIO se crea al primer uso."""

    def __init__(self):
        self._client: Optional[Minio] = None
        self.bucket_name = settings.MINIO_BUCKET_NAME

    @property
    def client(self) -> Minio:
        if self._client is None:
            self._client = Minio(
                settings.minio_endpoint,
                access_key=settings.MINIO_ACCESS_KEY,
                secret_key=settings.MINIO_SECRET_KEY,
                secure=settings.MINIO_USE_SSL
            )
            self._ensure_bucket_exists()
        return self._client

    def _ensure_bucket_exists(self):
        try:
            if not self._client.bucket_exists(self.bucket_name):
                self._client.make_bucket(self.bucket_name)
                logger.info(f"Created MinIO bucket: {self.bucket_name}")
        except S3Error as e:
            logger.error(f"MinIO bucket setup error: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Serviço de armazenamento indisponível."
            )

    def generate_key(self, owner_id: UUID, extension: str) -> str:
        # Estructura: clients/owner_id/uuid.ext
        return f"clients/{owner_id}/{uuid4().hex}.{extension}"

    def save_base64(self, data_uri: str, owner_id: UUID) -> str:
        """
        Decodifica un payload ``data:image/<ext>;base64,...`` y lo sube.

        Returns:
            key del objeto en el bucket
        """
        match = DATA_URI_PATTERN.match(data_uri)
        if not match:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Formato de imagem inválido."
            )

        extension = match.group(1).lower()
        if extension not in settings.ALLOWED_IMAGE_TYPES:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Tipo de imagem não permitido: {extension}"
            )

        try:
            content = base64.b64decode(data_uri[match.end():], validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Imagem inválida."
            )

        key = self.generate_key(owner_id, extension)
        try:
            self.client.put_object(
                self.bucket_name,
                key,
                io.BytesIO(content),
                length=len(content),
                content_type=f"image/{extension}"
            )
        except S3Error as e:
            logger.error(f"MinIO upload error: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Não foi possível salvar a foto."
            )
        return key

    def delete(self, key: Optional[str]) -> bool:
        if not key or is_external_url(key):
            return False
        try:
            self.client.remove_object(self.bucket_name, key)
            return True
        except S3Error as e:
            logger.error(f"MinIO file deletion error: {e}")
            return False

    def url(self, key: Optional[str], expires: timedelta = timedelta(hours=1)) -> Optional[str]:
        """URL firmada para la foto; las URLs externas se devuelven tal cual."""
        if not key:
            return None
        if is_external_url(key):
            return key
        try:
            return self.client.presigned_get_object(self.bucket_name, key, expires=expires)
        except S3Error as e:
            logger.error(f"MinIO download URL generation error: {e}")
            return None


# Singleton instance
photo_storage = ClientPhotoStorage()
