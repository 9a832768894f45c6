"""
Two sessions racing on the same access request, each on its own connection to a
file-backed SQLite database.
"""

from types import SimpleNamespace

import pytest

from rfi_access.errors import ConflictError, InvalidTransitionError
from rfi_access.models.access_request import AccessRequest
from rfi_access.models.project import Contact, Project, ProjectStakeholder
from rfi_access.models.user import User, UserRole
from rfi_access.services import auto_approval
from rfi_access.services.access_workflow import AccessWorkflow
from rfi_access.services.event_bus import EventType


@pytest.fixture
def seeded(file_session_factory):
    session = file_session_factory()
    admin_one = User(email="one@example.com", role=UserRole.ADMIN.value, full_name="Admin One")
    admin_two = User(email="two@example.com", role=UserRole.ADMIN.value, full_name="Admin Two")
    project = Project(project_number="P-2001", name="Harbor Crane Retrofit", client_id="client-1")
    contact = Contact(email="jane@contractor.example.com", name="Jane Field", client_id="client-1")
    session.add_all([admin_one, admin_two, project, contact])
    session.commit()
    ids = SimpleNamespace(
        admin_one=admin_one.id,
        admin_two=admin_two.id,
        project=project.id,
        contact=contact.id,
    )
    session.close()
    return ids


@pytest.fixture
def sessions(file_session_factory):
    first, second = file_session_factory(), file_session_factory()
    try:
        yield first, second
    finally:
        second.close()
        first.close()


def _workflow(session, bus, rule_names=()):
    return AccessWorkflow(session, bus, rule_names=list(rule_names))


def _submit_pending(file_session_factory, bus, ids) -> str:
    session = file_session_factory()
    try:
        return _workflow(session, bus).submit_request(ids.contact, ids.project, "STAKEHOLDER_L1").id
    finally:
        session.close()


def _reload(file_session_factory, request_id):
    session = file_session_factory()
    try:
        req = session.get(AccessRequest, request_id)
        stakeholders = session.query(ProjectStakeholder).filter(
            ProjectStakeholder.contact_id == req.contact_id,
            ProjectStakeholder.project_id == req.project_id,
        ).count()
        return req.to_dict(), stakeholders
    finally:
        session.close()


def test_decision_on_stale_read_does_not_overwrite(file_session_factory, seeded, sessions, bus, published):
    request_id = _submit_pending(file_session_factory, bus, seeded)
    first, second = sessions
    late = _workflow(second, bus)
    assert late.get(request_id).status == "PENDING"

    _workflow(first, bus).decide(request_id, "APPROVED", seeded.admin_one)
    with pytest.raises(InvalidTransitionError):
        late.decide(request_id, "REJECTED", seeded.admin_two)
    second.rollback()

    record, stakeholders = _reload(file_session_factory, request_id)
    assert record["status"] == "APPROVED"
    assert record["processed_by_id"] == seeded.admin_one
    assert stakeholders == 1
    assert [e.payload["status"] for e in published if e.type == EventType.ACCESS_REQUEST_DECIDED] == ["APPROVED"]


def test_concurrent_revokes_publish_once(file_session_factory, seeded, sessions, bus, published):
    request_id = _submit_pending(file_session_factory, bus, seeded)
    first, second = sessions
    _workflow(first, bus).decide(request_id, "APPROVED", seeded.admin_one)
    late = _workflow(second, bus)
    assert late.get(request_id).status == "APPROVED"

    _workflow(first, bus).revoke(request_id, seeded.admin_one)
    with pytest.raises(InvalidTransitionError):
        late.revoke(request_id, seeded.admin_two)
    second.rollback()

    record, stakeholders = _reload(file_session_factory, request_id)
    assert record["status"] == "REVOKED"
    assert record["revoked_by_id"] == seeded.admin_one
    assert stakeholders == 0
    assert sum(e.type == EventType.ACCESS_REQUEST_REVOKED for e in published) == 1


class TestConcurrentSubmit:
    """The second submitter passes its checks, then the first commits before it inserts."""

    def _race(self, monkeypatch, seeded, sessions, bus, skip_open_check):
        first, second = sessions
        late = _workflow(second, bus, rule_names=["submit-elsewhere"])

        def submit_elsewhere(ctx):
            _workflow(first, bus).submit_request(seeded.contact, seeded.project, "STAKEHOLDER_L1")
            if skip_open_check:
                monkeypatch.setattr(late.ledger, "find_open_by_pair", lambda contact_id, project_id: None)
            return None

        monkeypatch.setitem(auto_approval.RULES, "submit-elsewhere", submit_elsewhere)
        with pytest.raises(ConflictError):
            late.submit_request(seeded.contact, seeded.project, "STAKEHOLDER_L1")
        second.rollback()

    @pytest.mark.parametrize("skip_open_check", [False, True], ids=["open-check", "unique-index"])
    def test_exactly_one_submission_succeeds(
        self, monkeypatch, file_session_factory, seeded, sessions, bus, published, skip_open_check
    ):
        self._race(monkeypatch, seeded, sessions, bus, skip_open_check)

        session = file_session_factory()
        try:
            records = session.query(AccessRequest).filter(
                AccessRequest.contact_id == seeded.contact,
                AccessRequest.project_id == seeded.project,
            ).all()
        finally:
            session.close()
        assert [r.status for r in records] == ["PENDING"]
        assert [e.type for e in published] == [EventType.ACCESS_REQUEST_SUBMITTED]
