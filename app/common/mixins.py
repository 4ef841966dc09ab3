"""
Mixins comunes para los modelos
"""
from sqlalchemy import Column, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from uuid import uuid4


class UUIDMixin:
    """Clave primaria UUID"""

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4, index=True)


class TimestampMixin:
    """Mixin for models that need timestamp tracking"""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class BaseMixin(UUIDMixin, TimestampMixin):
    """Combina id y timestamps para la mayoría de modelos de negocio"""
