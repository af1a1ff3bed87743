"""Response models of the lead endpoints."""

from typing import Optional, Union

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    message: str = Field(..., description="Human readable outcome.")


class LeadEditResult(BaseModel):
    """Outcome of an edit, naming the agent the lead moved to, if any."""

    message: str = "Lead updated successfully"
    transferred_to: Optional[str] = Field(
        default=None,
        serialization_alias="transferredTo",
        description="Agent now handling the lead as a verification call.",
    )
    returned_to: Optional[str] = Field(
        default=None,
        serialization_alias="returnedTo",
        description="Agent the lead went back to after a verification call.",
    )


class InvalidRow(BaseModel):
    """A bulk upload row that was rejected."""

    row: int = Field(..., description="1-based position in the uploaded list.")
    mobile: Optional[Union[str, int]] = None
    reason: str


class BulkCreateResult(BaseModel):
    """Counters of a bulk upload."""

    message: str
    received: int = 0
    valid: int = 0
    inserted: int = 0
    skipped_existing: int = Field(default=0, serialization_alias="skippedExisting")
    invalid_count: int = Field(default=0, serialization_alias="invalidCount")
    invalid: list[InvalidRow] = Field(default_factory=list)
