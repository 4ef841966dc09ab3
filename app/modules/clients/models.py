from sqlalchemy import Column, String, Text, Date, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.database.database import Base
from app.common.mixins import BaseMixin


class Client(Base, BaseMixin):
    """Cliente del salón, propiedad de un owner."""
    __tablename__ = "clients"

    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    cpf = Column(String(14), nullable=True)
    birth_date = Column(Date, nullable=True)
    address = Column(Text, nullable=True)
    anamnesis = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    # Key del objeto en MinIO o URL externa
    photo = Column(String(500), nullable=True)
    allergies = Column(JSON, nullable=True)

    # Relationships
    owner = relationship("User")
    schedulings = relationship("Scheduling", back_populates="client")

    def __repr__(self):
        return f"<Client(id={self.id}, name={self.name})>"
