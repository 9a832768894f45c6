"""Admin account actions: role checks, self-deactivation guard, no-op reporting, audit trail."""

import pytest

from rfi_access.config import Settings
from rfi_access.errors import ForbiddenError, InvalidInputError, NoOpError, NotFoundError, SelfActionForbiddenError
from rfi_access.models.admin_audit_log import AdminAuditLog
from rfi_access.models.user import User
from rfi_access.services.admin_actions import AdminActions
from rfi_access.services.event_bus import EventType
from rfi_access.services.notifications import NotificationGateway


@pytest.fixture
def actions(db, bus):
    return AdminActions(db, bus, NotificationGateway(Settings(email_provider="log")))


@pytest.fixture
def target(make_user):
    return make_user(email="field.engineer@example.com", full_name="Field Engineer")


def test_admin_cannot_deactivate_self(db, actions, admin, published):
    with pytest.raises(SelfActionForbiddenError):
        actions.deactivate_user(admin, admin.id)

    db.refresh(admin)
    assert admin.active is True
    assert db.query(AdminAuditLog).count() == 0
    assert published == []


def test_deactivate_then_activate(db, actions, admin, target, published):
    before = target.updated_at

    user = actions.deactivate_user(admin, target.id)
    assert user.active is False
    assert user.updated_at >= before

    user = actions.activate_user(admin, target.id)
    assert user.active is True

    audit = db.query(AdminAuditLog).order_by(AdminAuditLog.created_at).all()
    assert [(a.action, a.previous_active, a.new_active, a.acting_admin_id) for a in audit] == [
        ("user.deactivate", True, False, admin.id),
        ("user.activate", False, True, admin.id),
    ]
    assert [e.type for e in published] == [EventType.USER_DEACTIVATED, EventType.USER_ACTIVATED]
    assert published[0].payload["previous_active"] is True
    assert published[0].payload["active"] is False
    assert published[0].payload["acting_admin_id"] == admin.id


def test_already_in_state_is_noop(db, actions, admin, target, published):
    with pytest.raises(NoOpError, match="already active"):
        actions.activate_user(admin, target.id)

    actions.deactivate_user(admin, target.id)
    with pytest.raises(NoOpError, match="already inactive"):
        actions.deactivate_user(admin, target.id)

    assert db.query(AdminAuditLog).count() == 1
    assert len(published) == 1


def test_missing_target(actions, admin):
    with pytest.raises(NotFoundError):
        actions.activate_user(admin, "missing")
    with pytest.raises(NotFoundError):
        actions.deactivate_user(admin, "missing")


def test_non_admin_forbidden(db, actions, make_user, target):
    manager = make_user(email="manager@example.com", role="MANAGER")
    with pytest.raises(ForbiddenError):
        actions.deactivate_user(manager, target.id)
    assert db.query(User).filter(User.id == target.id).one().active is True


def test_send_test_email(actions, admin, make_user):
    assert actions.send_test_email(admin, "ops@example.com").success

    with pytest.raises(InvalidInputError):
        actions.send_test_email(admin, "nope")
    with pytest.raises(ForbiddenError):
        actions.send_test_email(make_user(email="u2@example.com"), "ops@example.com")
