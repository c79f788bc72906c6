# hr_compliance/models/client.py
import uuid

from sqlalchemy import Column, String, Boolean, DateTime, func, text

from hr_compliance.db.base import Base


class Client(Base):
    """Service user (care client); only active clients get period records."""

    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False, index=True)
    branch_id = Column(String(36), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, server_default=text("1"), index=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<Client id={self.id} name={self.name!r} active={self.is_active}>"
