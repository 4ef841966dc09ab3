from sqlalchemy import Column, String, Date, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from enum import Enum
from app.database.database import Base
from app.common.mixins import BaseMixin


class SchedulingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Scheduling(Base, BaseMixin):
    """Agendamiento de un servicio en un establecimiento."""
    __tablename__ = "schedulings"

    scheduled_date = Column(Date, nullable=False, index=True)
    # HH:MM en la zona horaria del negocio
    scheduled_time = Column(String(5), nullable=False)
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    establishment_id = Column(
        UUID(as_uuid=True), ForeignKey("establishments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    client_name = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=SchedulingStatus.PENDING.value, index=True)

    # Relationships
    service = relationship("Service", back_populates="schedulings")
    establishment = relationship("Establishment", back_populates="schedulings")
    client = relationship("Client", back_populates="schedulings")
    sales = relationship("Sale", back_populates="scheduling")

    def as_notification(self) -> dict:
        """Datos serializables para las tareas de email."""
        return {
            "client_name": self.client_name,
            "service_name": self.service.name if self.service else "",
            "establishment_name": self.establishment.name if self.establishment else "",
            "date": self.scheduled_date.strftime("%d/%m/%Y"),
            "time": self.scheduled_time,
        }

    def __repr__(self):
        return f"<Scheduling(id={self.id}, date={self.scheduled_date}, time={self.scheduled_time})>"
