"""Lead endpoints: listing with owner backfill, intake, edits and deletion."""

from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from leadcrm.models.auth_models import Principal
from leadcrm.models.lead_models import BulkCreateResult, LeadEditResult, MessageResponse
from leadcrm.repositories.crm.dependencies import get_db
from leadcrm.repositories.crm.schemas.lead_schema import (
    LeadBulkCreate,
    LeadCreate,
    LeadResponse,
    LeadUpdate,
)
from leadcrm.services.leads.lead_service import LeadService, get_lead_service
from leadcrm.services.users.auth_service import admin_only, any_user

lead_router = APIRouter(tags=["Leads"])


@lead_router.get("/leads", response_model=List[LeadResponse])
def list_leads(
    db: Session = Depends(get_db),
    service: LeadService = Depends(get_lead_service),
    principal: Principal = Depends(any_user),
) -> List[LeadResponse]:
    """
    Return the leads visible to the caller.

    Admins get every lead, after ownerless leads were round-robin assigned;
    agents get only the leads assigned to them.
    """
    return service.list_for(db, principal)


@lead_router.get("/lead/{lead_id}", response_model=LeadResponse)
def get_lead(
    lead_id: str,
    db: Session = Depends(get_db),
    service: LeadService = Depends(get_lead_service),
    principal: Principal = Depends(any_user),
) -> LeadResponse:
    return service.get_for(db, lead_id, principal)


@lead_router.post(
    "/add-lead",
    response_model=LeadResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": MessageResponse, "description": "Invalid mobile, status or date"},
        409: {"description": "A lead with this mobile already exists"},
    },
)
def add_lead(
    data: LeadCreate,
    db: Session = Depends(get_db),
    service: LeadService = Depends(get_lead_service),
    principal: Principal = Depends(any_user),
) -> LeadResponse:
    """
    Create a single lead.

    Args:
        data (LeadCreate): Lead fields; only ``mobile`` is required.

    Returns:
        LeadResponse: The stored lead, including its resolved owner and date.
    """
    return service.create(db, data, principal)


@lead_router.post("/add-leads-bulk", response_model=BulkCreateResult)
def add_leads_bulk(
    data: LeadBulkCreate,
    db: Session = Depends(get_db),
    service: LeadService = Depends(get_lead_service),
    principal: Principal = Depends(any_user),
) -> JSONResponse:
    """
    Import a list of leads.

    Responds 201 when something was inserted, 200 when every valid row
    already existed and 400 when no row was valid.
    """
    result = service.bulk_create(db, data.leads, principal)
    if result.inserted:
        code = status.HTTP_201_CREATED
    elif result.valid:
        code = status.HTTP_200_OK
    else:
        code = status.HTTP_400_BAD_REQUEST
    return JSONResponse(status_code=code, content=result.model_dump(mode="json", by_alias=True))


@lead_router.put(
    "/edit-lead/{lead_id}",
    response_model=LeadEditResult,
    response_model_exclude_none=True,
)
def edit_lead(
    lead_id: str,
    data: LeadUpdate,
    db: Session = Depends(get_db),
    service: LeadService = Depends(get_lead_service),
    principal: Principal = Depends(any_user),
) -> LeadEditResult:
    """Apply a partial update; only the keys present in the body change."""
    return service.update(db, lead_id, data, principal)


@lead_router.delete("/delete-lead/{lead_id}", response_model=MessageResponse)
def delete_lead(
    lead_id: str,
    db: Session = Depends(get_db),
    service: LeadService = Depends(get_lead_service),
    principal: Principal = Depends(admin_only),
) -> MessageResponse:
    service.delete(db, lead_id, principal)
    return MessageResponse(message="Deleted successfully")
