from datetime import datetime

import pytest

from leadcrm.repositories.crm.models.follow_up_model import FollowUpHistory
from leadcrm.repositories.crm.models.lead_model import Lead
from leadcrm.repositories.crm.schemas.lead_schema import LeadCreate, LeadUpdate
from leadcrm.services.exceptions import FollowUpNotFoundError
from leadcrm.services.leads.statuses import LeadStatus

from tests.conftest import ADMIN, NOW, TOMORROW_9AM, agent


@pytest.fixture()
def tracked_lead(db, lead_service):
    return lead_service.create(
        db,
        LeadCreate(mobile="9800000001", status="Busy", remarks="no answer", assigned_to="alice"),
        ADMIN,
    )


def test_sync_is_idempotent(db, ledger, tracked_lead) -> None:
    first = ledger.sync(db, tracked_lead, NOW, "admin", status_set=False)
    second = ledger.sync(db, tracked_lead, NOW, "admin", status_set=False)

    assert first.id == second.id
    assert (second.status, second.date, second.remarks) == ("Busy", TOMORROW_9AM, "no answer")
    assert second.mobile == "9800000001"
    assert db.query(FollowUpHistory).count() == 1


def test_sync_with_status_appends_history(db, ledger, tracked_lead) -> None:
    ledger.sync(db, tracked_lead, NOW, "alice", status_set=True)

    history = ledger.repository.history(db, tracked_lead.lead_id)
    assert [entry.recorded_by for entry in history] == ["admin", "alice"]


def test_prior_matches_looks_at_recent_history_only(db, lead_service, ledger, tracked_lead) -> None:
    for status in ("Busy", "RNR", "RNR", "RNR"):
        lead_service.update(db, tracked_lead.lead_id, LeadUpdate(status=status), agent("alice"))

    assert ledger.prior_matches(db, tracked_lead, LeadStatus.RNR) == 3
    # Busy rows exist, but not among the three latest
    assert ledger.prior_matches(db, tracked_lead, LeadStatus.BUSY) == 0


def test_detail_returns_current_record_and_history(db, lead_service, ledger, tracked_lead) -> None:
    lead_service.update(
        db, tracked_lead.lead_id, LeadUpdate(status="Details_shared"), agent("alice")
    )

    detail = ledger.detail(db, tracked_lead.lead_id)

    assert detail.current.status == "Details_shared"
    assert [entry.status for entry in detail.history] == ["Busy", "Details_shared"]
    dumped = detail.model_dump(by_alias=True)
    assert "recordedAt" in dumped["history"][0]
    assert "createdAt" in dumped["current"]


def test_detail_of_unknown_lead(db, ledger) -> None:
    with pytest.raises(FollowUpNotFoundError):
        ledger.detail(db, "nope")


def test_agenda_buckets_by_day(db, lead_service) -> None:
    dates = {
        "9800000001": "2026-03-09T10:00:00",
        "9800000002": "2026-03-10T18:00:00",
        "9800000003": None,
        "9800000004": "2026-03-14T10:00:00",
    }
    for mobile, dob in dates.items():
        lead_service.create(
            db,
            LeadCreate(
                mobile=mobile,
                status="Details_shared",
                remarks="sent brochure",
                dob=dob,
                assigned_to="alice" if mobile != "9800000002" else "bob",
            ),
            ADMIN,
        )

    agenda = lead_service.agenda_for(db, ADMIN)
    assert [item.mobile for item in agenda.overdue] == ["9800000001"]
    assert [item.mobile for item in agenda.today] == ["9800000002"]
    assert [item.mobile for item in agenda.tomorrow] == ["9800000003"]
    assert agenda.tomorrow[0].date == TOMORROW_9AM

    own = lead_service.agenda_for(db, agent("Alice"))
    assert own.today == []
    assert [item.mobile for item in own.overdue] == ["9800000001"]


def test_reconcile_rebuilds_current_records(db, lead_service, ledger, tracked_lead) -> None:
    missing = lead_service.create(
        db, LeadCreate(mobile="9800000002", status="CP", remarks="via broker"), ADMIN
    )
    stale = lead_service.create(db, LeadCreate(mobile="9800000003"), ADMIN)
    repository = ledger.repository
    repository.delete(db, missing.lead_id)
    repository.upsert(db, stale.lead_id, {"status": "Busy", "remarks": "old"}, NOW)
    repository.upsert(db, "ghost", {"status": "Busy", "remarks": "orphan"}, NOW)

    report = lead_service.reconcile_follow_ups(db)

    assert (report.created, report.updated, report.removed) == (1, 1, 2)
    assert sorted(repository.list_ids(db)) == sorted([tracked_lead.lead_id, missing.lead_id])
    # history is never rewritten
    assert db.query(FollowUpHistory).count() == 2


def test_reconcile_uses_operation_time_when_lead_has_no_date(db, ledger) -> None:
    legacy = Lead(mobile="9800000005", status="Booked", remarks="token paid")
    db.add(legacy)
    db.commit()

    moment = datetime(2026, 3, 10, 8, 0)
    report = ledger.reconcile(db, [legacy], moment)

    record = ledger.repository.get(db, str(legacy.id))
    assert report.created == 1
    assert record.date == moment


def test_agent_views_include_legacy_leads(db, lead_service, ledger) -> None:
    legacy = Lead(mobile="9800000006", status="Busy", remarks="no answer", assigned_to=" Alice ")
    db.add(legacy)
    db.commit()
    ledger.reconcile(db, [legacy], NOW)

    own = ledger.list(db, owner="alice")
    agenda = lead_service.agenda_for(db, agent("alice"))

    assert [record.followup_id for record in own] == [str(legacy.id)]
    assert [item.mobile for item in agenda.today] == ["9800000006"]
    assert ledger.list(db, owner="bob") == []
