"""
Access ledger: open-record uniqueness and the transition rules enforced on update().
"""

from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from rfi_access.errors import ConflictError, InvalidInputError, InvalidTransitionError, NotFoundError
from rfi_access.models.access_request import AccessRequest
from rfi_access.repositories.access_ledger import AccessLedger


@pytest.fixture
def ledger(db):
    return AccessLedger(db)


@pytest.fixture
def pair(make_contact, make_project):
    return make_contact(), make_project()


def _open_count(db, contact, project):
    return db.query(AccessRequest).filter(
        AccessRequest.contact_id == contact.id,
        AccessRequest.project_id == project.id,
        AccessRequest.status.in_(("PENDING", "APPROVED")),
    ).count()


def test_create_and_find_open(db, ledger, pair):
    contact, project = pair
    req = ledger.create(contact.id, project.id, "STAKEHOLDER_L1", justification="site visit")
    db.commit()

    assert ledger.get_by_id(req.id) is req
    assert ledger.find_open_by_pair(contact.id, project.id).id == req.id
    assert ledger.get_by_id("unknown") is None


def test_create_detects_existing_open_record(db, ledger, pair):
    contact, project = pair
    ledger.create(contact.id, project.id, "STAKEHOLDER_L1")
    db.commit()

    with pytest.raises(ConflictError):
        ledger.create(contact.id, project.id, "STAKEHOLDER_L2")
    assert _open_count(db, contact, project) == 1


def test_unique_index_catches_racing_create(db, ledger, pair, monkeypatch):
    """Simulates a concurrent insert that slipped past the find-first check."""
    contact, project = pair
    ledger.create(contact.id, project.id, "STAKEHOLDER_L1")
    db.commit()
    monkeypatch.setattr(ledger, "find_open_by_pair", lambda contact_id, project_id: None)

    with pytest.raises(ConflictError):
        ledger.create(contact.id, project.id, "STAKEHOLDER_L1")

    assert _open_count(db, contact, project) == 1


def test_closed_records_do_not_block_new_ones(db, ledger, pair):
    contact, project = pair
    first = ledger.create(contact.id, project.id, "STAKEHOLDER_L1")
    ledger.update(first.id, {"status": "REJECTED", "processed_at": datetime.utcnow(), "processed_by_id": None})
    db.commit()

    second = ledger.create(contact.id, project.id, "STAKEHOLDER_L1")
    db.commit()
    assert second.status == "PENDING"


def test_create_cannot_start_closed(ledger, pair):
    contact, project = pair
    with pytest.raises(InvalidInputError):
        ledger.create(contact.id, project.id, "STAKEHOLDER_L1", status="REVOKED")


def test_update_missing_record(ledger):
    with pytest.raises(NotFoundError):
        ledger.update("missing", {"status": "APPROVED"})


def test_update_rejects_unknown_fields(ledger, pair):
    contact, project = pair
    req = ledger.create(contact.id, project.id, "STAKEHOLDER_L1")
    with pytest.raises(InvalidInputError):
        ledger.update(req.id, {"contact_id": "someone-else"})


@pytest.mark.parametrize(
    "start, target",
    [
        ("PENDING", "REVOKED"),
        ("APPROVED", "PENDING"),
        ("APPROVED", "REJECTED"),
        ("REJECTED", "APPROVED"),
        ("REJECTED", "REVOKED"),
        ("REVOKED", "APPROVED"),
    ],
)
def test_illegal_transitions(db, ledger, pair, start, target):
    contact, project = pair
    req = AccessRequest(contact_id=contact.id, project_id=project.id, requested_role="STAKEHOLDER_L1", status=start)
    db.add(req)
    db.commit()

    with pytest.raises(InvalidTransitionError):
        ledger.update(req.id, {"status": target})
    db.refresh(req)
    assert req.status == start


def test_processed_record_is_immutable(db, ledger, pair, admin):
    contact, project = pair
    req = ledger.create(contact.id, project.id, "STAKEHOLDER_L1")
    ledger.update(req.id, {"status": "APPROVED", "processed_at": datetime.utcnow(), "processed_by_id": admin.id})
    db.commit()

    with pytest.raises(InvalidTransitionError):
        ledger.update(req.id, {"justification": "changed later"})
    with pytest.raises(InvalidTransitionError):
        ledger.update(req.id, {"status": "REVOKED", "processed_by_id": "someone"})

    revoked = ledger.update(req.id, {"status": "REVOKED", "revoked_at": datetime.utcnow(), "revoked_by_id": admin.id})
    assert revoked.status == "REVOKED"
    assert revoked.processed_by_id == admin.id


def test_pending_record_accepts_field_updates(ledger, pair):
    contact, project = pair
    req = ledger.create(contact.id, project.id, "STAKEHOLDER_L1")
    assert ledger.update(req.id, {"justification": "more detail"}).justification == "more detail"


def test_update_refuses_both_approvers(ledger, pair, admin):
    contact, project = pair
    req = ledger.create(contact.id, project.id, "STAKEHOLDER_L1")
    with pytest.raises(InvalidInputError):
        ledger.update(req.id, {
            "status": "APPROVED",
            "auto_approval_reason": "domain-match: x",
            "processed_by_id": admin.id,
        })


def test_database_check_rejects_both_approvers(db, pair, admin):
    contact, project = pair
    db.add(AccessRequest(
        contact_id=contact.id,
        project_id=project.id,
        requested_role="STAKEHOLDER_L1",
        status="APPROVED",
        auto_approval_reason="role-threshold: x",
        processed_by_id=admin.id,
    ))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_list_by_filters_and_orders(db, ledger, make_contact, make_project):
    project = make_project()
    other_project = make_project(project_number="P-2002")
    a, b, c = make_contact(email="a@x.example.com"), make_contact(email="b@x.example.com"), make_contact(email="c@x.example.com")
    approved = ledger.create(a.id, project.id, "STAKEHOLDER_L1")
    ledger.update(approved.id, {"status": "APPROVED", "processed_at": datetime.utcnow(), "auto_approval_reason": "role-threshold: x"})
    pending = ledger.create(b.id, project.id, "STAKEHOLDER_L1")
    elsewhere = ledger.create(c.id, other_project.id, "STAKEHOLDER_L1")
    db.commit()

    assert [r.id for r in ledger.list_by(project_id=project.id)] == [pending.id, approved.id]
    assert [r.id for r in ledger.list_by(contact_id=c.id)] == [elsewhere.id]
    assert [r.id for r in ledger.list_by(status="APPROVED")] == [approved.id]
