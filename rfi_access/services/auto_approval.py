"""
Auto-approval rules for access requests.
Rules are named predicates; settings.auto_approval_rules picks which run and in what
order. A rule returns a detail string when it approves, None otherwise.
"""
import logging
from dataclasses import dataclass
from typing import Callable

from sqlalchemy.orm import Session

from rfi_access.models.project import Contact, Project, ProjectStakeholder
from rfi_access.models.user import ROLE_RANK

logger = logging.getLogger(__name__)


@dataclass
class ApprovalContext:
    db: Session
    contact: Contact
    project: Project
    requested_role: str
    max_role: str


RulePredicate = Callable[[ApprovalContext], str | None]


def _domain(email: str) -> str:
    return email.rsplit("@", 1)[-1].strip().lower()


def domain_match(ctx: ApprovalContext) -> str | None:
    """Contact's email domain matches an existing stakeholder on the same project."""
    domain = _domain(ctx.contact.email)
    rows = (
        ctx.db.query(Contact.email)
        .join(ProjectStakeholder, ProjectStakeholder.contact_id == Contact.id)
        .filter(ProjectStakeholder.project_id == ctx.project.id)
        .all()
    )
    if domain and any(_domain(email) == domain for (email,) in rows):
        return f"Email domain matches existing stakeholder ({domain})"
    return None


def sibling_project(ctx: ApprovalContext) -> str | None:
    """Contact already holds equal or higher access on another project of the same client."""
    level = 2 if ctx.requested_role == "STAKEHOLDER_L2" else 1
    sibling = (
        ctx.db.query(Project)
        .join(ProjectStakeholder, ProjectStakeholder.project_id == Project.id)
        .filter(
            ProjectStakeholder.contact_id == ctx.contact.id,
            ProjectStakeholder.stakeholder_level >= level,
            Project.client_id == ctx.project.client_id,
            Project.id != ctx.project.id,
        )
        .first()
    )
    if sibling:
        return f"Already has access to sibling project {sibling.project_number}"
    return None


def role_threshold(ctx: ApprovalContext) -> str | None:
    """Requested role ranks at or below the configured maximum."""
    requested = ROLE_RANK.get(ctx.requested_role)
    limit = ROLE_RANK.get(ctx.max_role)
    if requested is not None and limit is not None and requested <= limit:
        return f"Requested role {ctx.requested_role} is at or below {ctx.max_role}"
    return None


RULES: dict[str, RulePredicate] = {
    "domain-match": domain_match,
    "sibling-project": sibling_project,
    "role-threshold": role_threshold,
}


def evaluate_rules(ctx: ApprovalContext, rule_names: list[str]) -> str | None:
    """
    Run the named rules in order. Returns "<rule>: <detail>" for the first match,
    or None when the request needs human review. Unknown names are skipped.
    """
    for name in rule_names:
        rule = RULES.get(name)
        if rule is None:
            logger.warning("Unknown auto-approval rule %r ignored", name)
            continue
        detail = rule(ctx)
        if detail:
            return f"{name}: {detail}"
    return None
