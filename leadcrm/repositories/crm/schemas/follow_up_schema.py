"""Pydantic schemas for the follow-up ledger."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FollowUpResponse(BaseModel):
    """Current follow-up record of a lead."""

    model_config = ConfigDict(from_attributes=True)

    followup_id: str
    date: Optional[datetime] = None
    status: Optional[str] = None
    remarks: Optional[str] = None
    name: Optional[str] = None
    mobile: Optional[str] = None
    source: Optional[str] = None
    job_role: Optional[str] = None
    budget: Optional[str] = None
    project: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, serialization_alias="updatedAt")


class FollowUpHistoryResponse(BaseModel):
    """One entry of a lead's follow-up history."""

    model_config = ConfigDict(from_attributes=True)

    followup_id: str
    date: Optional[datetime] = None
    status: Optional[str] = None
    remarks: Optional[str] = None
    recorded_at: Optional[datetime] = Field(default=None, serialization_alias="recordedAt")
    recorded_by: Optional[str] = Field(default=None, serialization_alias="recordedBy")


class FollowUpDetail(BaseModel):
    current: Optional[FollowUpResponse] = None
    history: list[FollowUpHistoryResponse] = Field(default_factory=list)


class FollowUpAgenda(BaseModel):
    """Follow-ups due before today, today and tomorrow, each sorted by date."""

    overdue: list[FollowUpResponse] = Field(default_factory=list)
    today: list[FollowUpResponse] = Field(default_factory=list)
    tomorrow: list[FollowUpResponse] = Field(default_factory=list)


class ReconcileReport(BaseModel):
    created: int = 0
    updated: int = 0
    removed: int = 0
