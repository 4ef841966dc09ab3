from sqlalchemy import Column, String, Text, ForeignKey, Table, DateTime, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database.database import Base
from app.common.mixins import BaseMixin


employee_establishment = Table(
    "employee_establishment",
    Base.metadata,
    Column("user_id", UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("establishment_id", UUID(as_uuid=True), ForeignKey("establishments.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    UniqueConstraint("user_id", "establishment_id", name="uq_employee_establishment"),
)


class Establishment(Base, BaseMixin):
    """Salón o local de un owner."""
    __tablename__ = "establishments"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    address = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Relationships
    owner = relationship("User", back_populates="establishments")
    services = relationship("Service", back_populates="establishment", cascade="all, delete-orphan")
    employees = relationship(
        "User",
        secondary=employee_establishment,
        back_populates="work_establishments",
    )
    schedulings = relationship("Scheduling", back_populates="establishment", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Establishment(id={self.id}, name={self.name})>"
