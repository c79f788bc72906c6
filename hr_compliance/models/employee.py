# hr_compliance/models/employee.py
import uuid

from sqlalchemy import Column, String, DateTime, func

from hr_compliance.db.base import Base


class Employee(Base):
    __tablename__ = "employees"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True, index=True)
    branch_id = Column(String(36), nullable=True, index=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<Employee id={self.id} name={self.name!r}>"
