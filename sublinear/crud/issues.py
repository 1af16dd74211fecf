"""Issue reads and writes.

Creation is a read-then-write sequence (default state, next number, insert)
with no transaction spanning the reads. The unique identifier and
``(team_id, number)`` constraints reject a racing duplicate at commit time.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select, update

from ..core.errors import DecodeError, NotFoundError, ValidationFailedError
from ..core.ids import build_url, issue_identifier, new_opaque_id, utcnow_iso
from ..db.session import commit, flush
from ..models.issue import Issue
from ..models.label import IssueLabel, Label
from ..models.project import Project
from ..models.team import Team
from ..models.workflow_state import WorkflowState
from ..schemas.filters import IssueOrderBy, IssuesFilter
from ..schemas.issue import IssueCreateInput, IssueUpdateInput
from ..services.allocator import next_issue_number
from ..services.context import OperationContext
from ..services.filters import clamp_limit, compile_issues_filter
from ..services.graph import Connection, IssueNode, fetch_issue, fetch_issues
from .workflow_states import default_state


def list_issues(
    ctx: OperationContext,
    issue_filter: Optional[IssuesFilter] = None,
    first: Optional[int] = None,
    order_by: Optional[IssueOrderBy] = None,
) -> Connection[IssueNode]:
    # ``order_by`` only ever means updatedAt, which is the fixed ordering.
    return fetch_issues(ctx, compile_issues_filter(issue_filter), clamp_limit(first))


def get_issue(ctx: OperationContext, issue_id: str) -> IssueNode | None:
    return fetch_issue(ctx, issue_id)


def issue_exists(ctx: OperationContext, issue_id: str) -> bool:
    return ctx.db.execute(select(Issue.id).where(Issue.id == issue_id)).first() is not None


def create_issue(ctx: OperationContext, payload: IssueCreateInput) -> IssueNode:
    db = ctx.db
    team = db.get(Team, payload.team_id)
    if team is None:
        raise ValidationFailedError(f"team not found: {payload.team_id}")
    if payload.project_id is not None and db.get(Project, payload.project_id) is None:
        raise ValidationFailedError(f"project not found: {payload.project_id}")
    state = default_state(ctx, team.id)
    if state is None:
        raise ValidationFailedError(f"team {team.id} has no workflow states")

    number = next_issue_number(db, team.id)
    identifier = issue_identifier(team.key, number)
    issue_id = new_opaque_id("issue")
    now = utcnow_iso()
    db.add(
        Issue(
            id=issue_id,
            team_id=team.id,
            project_id=payload.project_id,
            number=number,
            identifier=identifier,
            title=payload.title,
            description=payload.description,
            state_id=state.id,
            assignee_id=None,
            archived=0,
            url=build_url(ctx.base_url, "issue", identifier),
            created_at=now,
            updated_at=now,
        )
    )
    commit(db)

    created = fetch_issue(ctx, issue_id)
    if created is None:
        raise DecodeError("failed to load created issue")
    return created


def update_issue(ctx: OperationContext, issue_id: str, payload: IssueUpdateInput) -> IssueNode:
    db = ctx.db
    issue = db.get(Issue, issue_id)
    if issue is None:
        raise NotFoundError("Issue")
    if payload.state_id is not None:
        state = db.get(WorkflowState, payload.state_id)
        if state is None:
            raise ValidationFailedError(f"workflow state not found: {payload.state_id}")
        if state.team_id != issue.team_id:
            raise ValidationFailedError(
                f"workflow state {payload.state_id} does not belong to team {issue.team_id}"
            )
        issue.state_id = state.id
    if payload.title is not None:
        issue.title = payload.title
    if payload.description is not None:
        issue.description = payload.description
    issue.updated_at = utcnow_iso()
    commit(db)

    updated = fetch_issue(ctx, issue_id)
    if updated is None:
        raise DecodeError("failed to load updated issue")
    return updated


def archive_issue(ctx: OperationContext, issue_id: str) -> bool:
    """Soft-delete; ``False`` when no issue has ``issue_id``."""

    result = ctx.db.execute(
        update(Issue).where(Issue.id == issue_id).values(archived=1, updated_at=utcnow_iso())
    )
    commit(ctx.db)
    return result.rowcount > 0


def add_label(ctx: OperationContext, issue_id: str, label_id: str) -> bool:
    """Attach ``label_id`` to the issue, creating the label on first use.

    Unknown labels are created with their id as name. Attaching twice is a
    no-op. Returns ``False`` when the issue does not exist.
    """

    db = ctx.db
    if not issue_exists(ctx, issue_id):
        return False
    if db.get(Label, label_id) is None:
        db.add(Label(id=label_id, name=label_id))
        flush(db)
    if db.get(IssueLabel, (issue_id, label_id)) is None:
        db.add(IssueLabel(issue_id=issue_id, label_id=label_id))
    commit(db)
    return True
