"""Pydantic schemas for leads."""

from datetime import datetime
from typing import Annotated, Any, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    computed_field,
    model_validator,
)

from leadcrm.services.leads.statuses import is_date_locked, status_of


def _as_text(value: Any) -> Any:
    """Spreadsheet uploads send numbers for budget, mobile and the like."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return value


Text = Annotated[Optional[str], BeforeValidator(_as_text)]
DateInput = Optional[Union[datetime, str]]

ASSIGNED_TO = AliasChoices("Assigned_to", "assigned_to")


class LeadCreate(BaseModel):
    """Payload of a single lead, also used for every row of a bulk upload.

    Values are kept raw here; mobile, status and date rules are applied by
    the lead service so bulk uploads can report errors per row.
    """

    name: Text = None
    mobile: Text = None
    source: Text = None
    status: Text = None
    job_role: Text = None
    budget: Text = None
    project: Text = None
    remarks: Text = None
    dob: DateInput = None
    assigned_to: Text = Field(default=None, validation_alias=ASSIGNED_TO)


class LeadBulkCreate(BaseModel):
    """Payload of a bulk upload.

    Rows stay raw so a malformed row is reported on its own instead of
    failing the whole request.
    """

    leads: list[Any] = Field(default_factory=list)


class LeadUpdate(BaseModel):
    """Partial update; only keys present in the body are applied."""

    name: Text = None
    source: Text = None
    status: Text = None
    job_role: Text = None
    budget: Text = None
    project: Text = None
    remarks: Text = None
    dob: DateInput = None
    assigned_to: Text = Field(default=None, validation_alias=ASSIGNED_TO)


class LeadResponse(BaseModel):
    """Response model for a stored lead, keyed like the dashboard expects."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(exclude=True)
    lead_id: Optional[str] = None
    name: Optional[str] = None
    mobile: str
    source: Optional[str] = None
    status: Optional[str] = None
    job_role: Optional[str] = None
    budget: Optional[str] = None
    project: Optional[str] = None
    remarks: Optional[str] = None
    dob: Optional[datetime] = None
    assigned_to: Optional[str] = Field(default=None, serialization_alias="Assigned_to")
    assigned_at: Optional[datetime] = Field(default=None, serialization_alias="assignedAt")
    verification_call: bool = False
    original_assigned: Optional[str] = None
    transfer_date: Optional[datetime] = None
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, serialization_alias="updatedAt")
    created_by: Optional[str] = Field(default=None, serialization_alias="createdBy")
    updated_by: Optional[str] = Field(default=None, serialization_alias="updatedBy")

    @model_validator(mode="after")
    def _fallback_lead_id(self) -> "LeadResponse":
        if not self.lead_id:
            self.lead_id = str(self.id)
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def dob_locked(self) -> bool:
        return self.dob is not None and is_date_locked(status_of(self.status))
