# hr_compliance/schemas/compliance.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, constr, field_validator

from hr_compliance.services.periods import parse_period

ItemStatus = Literal["due", "completed", "overdue"]
SubPeriodStatus = Literal["completed", "due", "overdue", "upcoming"]


# ---------------------------
# Inputs (rows from the store, validated at the boundary)
# ---------------------------
class ComplianceTypeIn(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: constr(strip_whitespace=True, min_length=1) = Field(..., description="Compliance type ID.")
    name: str = Field(..., description="Display name.")
    frequency: str = Field(
        "annual", description="annual | quarterly | monthly | bi-annual | <other>."
    )
    target_table: str = Field("employees", description="employees | clients.")
    visible_in_employee_portal: bool = Field(True, description="Shown in the employee portal.")

    @field_validator("frequency", mode="before")
    @classmethod
    def _normalise_frequency(cls, v):
        return (v or "").strip().lower() if isinstance(v, str) or v is None else v

    @field_validator("visible_in_employee_portal", mode="before")
    @classmethod
    def _none_is_visible(cls, v):
        return True if v is None else v


class ComplianceRecordIn(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = Field(None, description="Record ID.")
    compliance_type_id: constr(strip_whitespace=True, min_length=1) = Field(
        ..., description="Compliance type this record belongs to."
    )
    period_identifier: constr(strip_whitespace=True) = Field(
        ..., description="YYYY | YYYY-MM | YYYY-Qn | YYYY-Hn | YYYY-Www."
    )
    status: str = Field("", description="completed | compliant | overdue | pending | ...")
    is_overdue: bool = Field(False, description="Overdue flag set by automation.")
    updated_at: datetime = Field(..., description="Last mutation timestamp.")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp.")

    @field_validator("period_identifier")
    @classmethod
    def _valid_period(cls, v: str) -> str:
        parse_period(v)  # InvalidPeriodIdentifier is a ValueError -> ValidationError
        return v

    @field_validator("status", mode="before")
    @classmethod
    def _normalise_status(cls, v):
        return (v or "").strip().lower() if isinstance(v, str) or v is None else v

    @field_validator("is_overdue", mode="before")
    @classmethod
    def _none_is_false(cls, v):
        return False if v is None else v

    @property
    def is_satisfied(self) -> bool:
        return self.status in ("completed", "compliant")


# ---------------------------
# Derived view
# ---------------------------
class _TimelinePeriodBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    period: str = Field(..., description="Period identifier.")
    label: str = Field(..., description="Human readable label, e.g. 'Q1 Jan to Mar'.")
    status: SubPeriodStatus
    completed_date: Optional[datetime] = Field(None, alias="completedDate")


class QuarterlyPeriodOut(_TimelinePeriodBase):
    quarter: int = Field(..., ge=1, le=4)


class MonthlyPeriodOut(_TimelinePeriodBase):
    month: int = Field(..., ge=1, le=12)


class BiAnnualPeriodOut(_TimelinePeriodBase):
    half: int = Field(..., ge=1, le=2)


class ComplianceItemOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Compliance type ID.")
    name: str
    frequency: str
    period: str = Field(..., description="Current (or backfilled) period identifier.")
    status: ItemStatus
    is_overdue: Optional[bool] = Field(None, alias="isOverdue")
    completed_date: Optional[datetime] = Field(None, alias="completedDate")

    quarterly_timeline: Optional[List[QuarterlyPeriodOut]] = Field(None, alias="quarterlyTimeline")
    monthly_timeline: Optional[List[MonthlyPeriodOut]] = Field(None, alias="monthlyTimeline")
    bi_annual_timeline: Optional[List[BiAnnualPeriodOut]] = Field(None, alias="biAnnualTimeline")

    @property
    def timeline(self) -> Optional[list]:
        return self.quarterly_timeline or self.monthly_timeline or self.bi_annual_timeline


class ComplianceOverviewOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    due_items: List[ComplianceItemOut] = Field(default_factory=list, alias="dueItems")
    completed_items: List[ComplianceItemOut] = Field(default_factory=list, alias="completedItems")


class PeriodOut(BaseModel):
    identifier: str
    year: int
    kind: str
    index: int
    label: str
    end_at: datetime = Field(..., description="Last second of the period (naive, server time).")


class AutomationRunOut(BaseModel):
    success: bool
    employee_records_created: int = 0
    client_records_created: int = 0
    employee_status_updates: int = 0
    client_status_updates: int = 0
    processed_at: datetime
    message: str = ""
