# hr_compliance/models/compliance_period_record.py
import uuid

from sqlalchemy import (
    Column, String, Text, Boolean, DateTime, ForeignKey, Index, UniqueConstraint,
    CheckConstraint, func, text,
)
from sqlalchemy.orm import relationship

from hr_compliance.db.base import Base
from hr_compliance.models.compliance_type import ComplianceType

# completed and compliant both count as "satisfied"
SATISFIED_STATUSES = ("completed", "compliant")


class CompliancePeriodRecord(Base):
    """
    One compliance obligation for one entity (employee or client) and one period.
    period_identifier: YYYY | YYYY-MM | YYYY-Qn | YYYY-Hn | YYYY-Www
    """

    __tablename__ = "compliance_period_records"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    compliance_type_id = Column(
        String(36), ForeignKey("compliance_types.id", ondelete="CASCADE"), nullable=False, index=True
    )
    employee_id = Column(
        String(36), ForeignKey("employees.id", ondelete="CASCADE"), nullable=True, index=True
    )
    client_id = Column(
        String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=True, index=True
    )

    period_identifier = Column(String(20), nullable=False, index=True)

    # pending | completed | compliant | overdue | <other>
    status = Column(String(20), nullable=False, default="pending", index=True)
    is_overdue = Column(Boolean, nullable=False, server_default=text("0"))

    completion_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    compliance_type = relationship(ComplianceType)

    __table_args__ = (
        # exactly one entity per record
        CheckConstraint(
            "(employee_id IS NULL) <> (client_id IS NULL)",
            name="ck_period_records_single_entity",
        ),
        UniqueConstraint("compliance_type_id", "employee_id", "period_identifier", name="uq_period_records_employee"),
        UniqueConstraint("compliance_type_id", "client_id", "period_identifier", name="uq_period_records_client"),
        Index("ix_period_records_employee_created", "employee_id", "created_at"),
        Index("ix_period_records_client_created", "client_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<CompliancePeriodRecord id={self.id} type={self.compliance_type_id} "
            f"period={self.period_identifier} status={self.status}>"
        )
