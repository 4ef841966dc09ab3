from sqlalchemy import Column, String, Text, Integer, Numeric, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.database.database import Base
from app.common.mixins import BaseMixin


class Service(Base, BaseMixin):
    """Servicio ofrecido por un establecimiento (corte, manicure, etc.)."""
    __tablename__ = "services"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    duration = Column(Integer, nullable=True)  # minutos
    establishment_id = Column(
        UUID(as_uuid=True), ForeignKey("establishments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Empleado responsable
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Relationships
    establishment = relationship("Establishment", back_populates="services")
    user = relationship("User", back_populates="services")
    sub_services = relationship(
        "SubService", back_populates="service", cascade="all, delete-orphan", order_by="SubService.name"
    )
    schedulings = relationship("Scheduling", back_populates="service", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name}, price={self.price})>"


class SubService(Base, BaseMixin):
    """Etapa o variante de un servicio con precio propio."""
    __tablename__ = "sub_services"

    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    duration = Column(Integer, nullable=True)

    service = relationship("Service", back_populates="sub_services")
