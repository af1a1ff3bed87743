"""Read access to the follow-up ledger and its repair job."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from leadcrm.models.auth_models import Principal
from leadcrm.repositories.crm.dependencies import get_db
from leadcrm.repositories.crm.schemas.follow_up_schema import (
    FollowUpAgenda,
    FollowUpDetail,
    FollowUpResponse,
    ReconcileReport,
)
from leadcrm.services.leads.follow_up_service import (
    FollowUpLedger,
    get_follow_up_ledger,
    lead_key,
)
from leadcrm.services.leads.lead_service import LeadService, get_lead_service
from leadcrm.services.leads.normalization import normalize_agent
from leadcrm.services.users.auth_service import admin_only, any_user

follow_up_router = APIRouter(tags=["Follow-ups"])


@follow_up_router.get("/follow-ups", response_model=List[FollowUpResponse])
def list_follow_ups(
    db: Session = Depends(get_db),
    ledger: FollowUpLedger = Depends(get_follow_up_ledger),
    principal: Principal = Depends(any_user),
) -> List[FollowUpResponse]:
    """Current follow-ups; agents only see the ones of leads they own."""
    owner = None if principal.is_admin else normalize_agent(principal.user_name)
    return ledger.list(db, owner=owner)


@follow_up_router.get("/follow-ups/agenda", response_model=FollowUpAgenda)
def follow_up_agenda(
    db: Session = Depends(get_db),
    service: LeadService = Depends(get_lead_service),
    principal: Principal = Depends(any_user),
) -> FollowUpAgenda:
    return service.agenda_for(db, principal)


@follow_up_router.post("/follow-ups/reconcile", response_model=ReconcileReport)
def reconcile_follow_ups(
    db: Session = Depends(get_db),
    service: LeadService = Depends(get_lead_service),
    principal: Principal = Depends(admin_only),
) -> ReconcileReport:
    """Recompute which leads need a current follow-up record."""
    return service.reconcile_follow_ups(db)


@follow_up_router.get("/follow-up/{lead_id}", response_model=FollowUpDetail)
def get_follow_up(
    lead_id: str,
    db: Session = Depends(get_db),
    service: LeadService = Depends(get_lead_service),
    principal: Principal = Depends(any_user),
) -> FollowUpDetail:
    """Current follow-up of a lead together with its history."""
    lead = service.get_for(db, lead_id, principal)
    return service.ledger.detail(db, lead_key(lead))
