# hr_compliance/models/compliance_type.py
import uuid

from sqlalchemy import Column, String, Text, Boolean, DateTime, Index, CheckConstraint, func, text

from hr_compliance.db.base import Base

# NOTE: keep simple string "enums" for SQLite portability
TARGET_TABLES = ("employees", "clients")


class ComplianceType(Base):
    __tablename__ = "compliance_types"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)

    # annual | quarterly | monthly | bi-annual | weekly | <other>
    frequency = Column(String(30), nullable=False, default="annual")

    # employees | clients
    target_table = Column(String(30), nullable=False, default="employees", index=True)

    visible_in_employee_portal = Column(Boolean, nullable=False, server_default=text("1"))

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            f"target_table IN {TARGET_TABLES}",
            name="ck_compliance_types_target_allowed",
        ),
        Index("ix_compliance_types_target_visible", "target_table", "visible_in_employee_portal"),
    )

    def __repr__(self) -> str:
        return f"<ComplianceType id={self.id} name={self.name!r} frequency={self.frequency}>"
