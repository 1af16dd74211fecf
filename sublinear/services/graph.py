"""Assemble flat, join-denormalised rows into typed graph nodes.

Scalar fields and the cheap to-one relations of an issue (state, project,
assignee) come from a single joined select. Collections that can grow without
bound (labels, comments, team members, project issues ...) are not loaded up
front: each node exposes a method that runs one scoped query for its owner
when the caller actually asks for that field.

Nodes are pydantic models, so ``model_dump(by_alias=True)`` yields the camelCase
shape clients expect. The operation context travels as a private attribute and
never appears in the dump.
"""

from __future__ import annotations

from typing import Any, ClassVar, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from pydantic.alias_generators import to_camel
from sqlalchemy import Select, desc, select

from ..core.errors import DecodeError, ValidationFailedError
from ..core.security import ensure_authorized
from ..models.comment import Comment
from ..models.issue import Issue
from ..models.label import IssueLabel, Label
from ..models.project import Project, ProjectTeam
from ..models.team import Team, TeamMember
from ..models.user import User
from ..models.workflow_state import WorkflowState
from .context import OperationContext
from .filters import EQ, CompiledFilter, clamp_limit, compile_issues_filter

# Placeholder returned when an issue points at a state row that is gone.
MISSING_STATE_ID = "state_missing"
MISSING_STATE_NAME = "Backlog"

ISSUE_COLUMNS: dict[str, Any] = {
    "issue.id": Issue.id,
    "issue.archived": Issue.archived,
    "issue.team_id": Issue.team_id,
    "issue.project_id": Issue.project_id,
    "issue.number": Issue.number,
    "team.id": Team.id,
    "team.key": Team.key,
    "team.name": Team.name,
    "project.id": Project.id,
    "project.name": Project.name,
    "state.name": WorkflowState.name,
}

NodeT = TypeVar("NodeT", bound=BaseModel)


class Node(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Relation fields resolved on demand, one query each.
    lazy_fields: ClassVar[tuple[str, ...]] = ()

    _ctx: Optional[OperationContext] = PrivateAttr(default=None)

    def bind(self, ctx: OperationContext):
        self._ctx = ctx
        return self

    def resolve_lazy(self, name: str) -> Any:
        if name not in self.lazy_fields:
            raise ValidationFailedError(f"{type(self).__name__} has no expandable field {name!r}")
        return getattr(self, name)()

    def _context(self) -> OperationContext:
        if self._ctx is None:
            raise RuntimeError(f"{type(self).__name__} is not bound to an operation context")
        ensure_authorized(self._ctx)
        return self._ctx


class Connection(BaseModel, Generic[NodeT]):
    nodes: list[NodeT] = Field(default_factory=list)


class UserNode(Node):
    id: str
    name: str
    email: str


class LabelNode(Node):
    id: str
    name: str


class CommentNode(Node):
    id: str
    body: str
    url: str
    created_at: Optional[str] = None


class WorkflowStateNode(Node):
    id: str
    name: str
    type: Optional[str] = None
    position: Optional[int] = None


class TeamNode(Node):
    lazy_fields = ("states", "members", "issues")

    id: str
    name: str
    key: str

    def states(self) -> Connection[WorkflowStateNode]:
        ctx = self._context()
        rows = ctx.db.execute(
            state_select().where(WorkflowState.team_id == self.id).order_by(WorkflowState.position, WorkflowState.id)
        ).all()
        return Connection[WorkflowStateNode](nodes=[state_from_row(row) for row in rows])

    def members(self, first: Optional[int] = None) -> Connection[UserNode]:
        ctx = self._context()
        rows = ctx.db.execute(
            select(User.id, User.name, User.email)
            .join(TeamMember, TeamMember.user_id == User.id)
            .where(TeamMember.team_id == self.id)
            .order_by(User.name, User.id)
            .limit(clamp_limit(first))
        ).all()
        return Connection[UserNode](nodes=[user_from_row(row) for row in rows])

    def issues(self, first: Optional[int] = None) -> Connection["IssueNode"]:
        ctx = self._context()
        compiled = compile_issues_filter(None)
        compiled.add("issue.team_id", EQ, self.id)
        return fetch_issues(ctx, compiled, clamp_limit(first))


class ViewerNode(UserNode):
    lazy_fields = ("teams",)

    def teams(self, first: Optional[int] = None) -> Connection[TeamNode]:
        ctx = self._context()
        rows = ctx.db.execute(
            team_select()
            .join(TeamMember, TeamMember.team_id == Team.id)
            .where(TeamMember.user_id == self.id)
            .order_by(Team.name, Team.id)
            .limit(clamp_limit(first))
        ).all()
        return Connection[TeamNode](nodes=[team_from_row(row).bind(ctx) for row in rows])


class ProjectNode(Node):
    lazy_fields = ("issues", "teams")

    id: str
    name: str
    slug_id: Optional[str] = None
    state: Optional[str] = None
    archived_at: Optional[str] = None
    url: Optional[str] = None

    def issues(self, first: Optional[int] = None) -> Connection["IssueNode"]:
        ctx = self._context()
        compiled = compile_issues_filter(None)
        compiled.add("issue.project_id", EQ, self.id)
        return fetch_issues(ctx, compiled, clamp_limit(first))

    def teams(self) -> Connection[TeamNode]:
        ctx = self._context()
        rows = ctx.db.execute(
            team_select()
            .join(ProjectTeam, ProjectTeam.team_id == Team.id)
            .where(ProjectTeam.project_id == self.id)
            .order_by(Team.name, Team.id)
        ).all()
        return Connection[TeamNode](nodes=[team_from_row(row).bind(ctx) for row in rows])


class IssueNode(Node):
    lazy_fields = ("labels", "comments", "team")

    id: str
    identifier: str
    number: Optional[int] = None
    title: str
    url: str
    description: Optional[str] = None
    archived: bool = False
    assignee: Optional[UserNode] = None
    project: Optional[ProjectNode] = None
    state: WorkflowStateNode
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    _team_id: Optional[str] = PrivateAttr(default=None)

    def labels(self) -> Connection[LabelNode]:
        ctx = self._context()
        rows = ctx.db.execute(
            select(Label.id, Label.name)
            .join(IssueLabel, IssueLabel.label_id == Label.id)
            .where(IssueLabel.issue_id == self.id)
            .order_by(Label.name, Label.id)
        ).all()
        return Connection[LabelNode](nodes=[label_from_row(row) for row in rows])

    def comments(self, first: Optional[int] = None) -> Connection[CommentNode]:
        ctx = self._context()
        rows = ctx.db.execute(
            _comment_select()
            .where(Comment.issue_id == self.id)
            .order_by(Comment.created_at, Comment.id)
            .limit(clamp_limit(first))
        ).all()
        return Connection[CommentNode](nodes=[comment_from_row(row) for row in rows])

    def team(self) -> Optional[TeamNode]:
        ctx = self._context()
        if self._team_id is None:
            return None
        row = ctx.db.execute(team_select().where(Team.id == self._team_id)).first()
        return team_from_row(row).bind(ctx) if row is not None else None


# ---------- row decoding ----------


def _column(row: Any, key: str) -> Any:
    try:
        return row._mapping[key]
    except (AttributeError, KeyError) as exc:
        raise DecodeError(f"row decode failed: missing column {key!r}") from exc


def _required(row: Any, key: str) -> Any:
    value = _column(row, key)
    if value is None:
        raise DecodeError(f"row decode failed: column {key!r} is null")
    return value


def user_from_row(row: Any) -> UserNode:
    return UserNode(id=_required(row, "id"), name=_required(row, "name"), email=_required(row, "email"))


def viewer_from_row(row: Any) -> ViewerNode:
    return ViewerNode(id=_required(row, "id"), name=_required(row, "name"), email=_required(row, "email"))


def team_from_row(row: Any) -> TeamNode:
    return TeamNode(id=_required(row, "id"), name=_required(row, "name"), key=_required(row, "key"))


def state_from_row(row: Any) -> WorkflowStateNode:
    return WorkflowStateNode(
        id=_required(row, "id"),
        name=_required(row, "name"),
        type=_column(row, "state_type"),
        position=_column(row, "position"),
    )


def project_from_row(row: Any) -> ProjectNode:
    return ProjectNode(
        id=_required(row, "id"),
        name=_column(row, "name") or "",
        slug_id=_column(row, "slug_id"),
        state=_column(row, "state"),
        archived_at=_column(row, "archived_at"),
        url=_column(row, "url"),
    )


def label_from_row(row: Any) -> LabelNode:
    return LabelNode(id=_required(row, "id"), name=_required(row, "name"))


def comment_from_row(row: Any) -> CommentNode:
    return CommentNode(
        id=_required(row, "id"),
        body=_required(row, "body"),
        url=_required(row, "url"),
        created_at=_column(row, "created_at"),
    )


def issue_from_row(row: Any, ctx: OperationContext) -> IssueNode:
    """Build an issue from one joined row; null relation columns mean "none"."""

    state_id = _column(row, "ws_id")
    if state_id is None:
        state = WorkflowStateNode(id=MISSING_STATE_ID, name=MISSING_STATE_NAME)
    else:
        state = WorkflowStateNode(
            id=state_id,
            name=_column(row, "ws_name") or MISSING_STATE_NAME,
            type=_column(row, "ws_type"),
            position=_column(row, "ws_position"),
        )

    project = None
    project_id = _column(row, "p_id")
    if project_id is not None:
        project = ProjectNode(
            id=project_id,
            name=_column(row, "p_name") or "",
            slug_id=_column(row, "p_slug_id"),
            state=_column(row, "p_state"),
            archived_at=_column(row, "p_archived_at"),
            url=_column(row, "p_url"),
        ).bind(ctx)

    assignee = None
    assignee_id = _column(row, "u_id")
    if assignee_id is not None:
        assignee = UserNode(
            id=assignee_id,
            name=_column(row, "u_name") or "",
            email=_column(row, "u_email") or "",
        ).bind(ctx)

    issue = IssueNode(
        id=_required(row, "id"),
        identifier=_required(row, "identifier"),
        number=_column(row, "number"),
        title=_required(row, "title"),
        url=_required(row, "url"),
        description=_column(row, "description"),
        archived=bool(_column(row, "archived")),
        assignee=assignee,
        project=project,
        state=state,
        created_at=_column(row, "created_at"),
        updated_at=_column(row, "updated_at"),
    )
    issue._team_id = _column(row, "team_id")
    return issue.bind(ctx)


# ---------- selects ----------


def team_select() -> Select:
    return select(Team.id, Team.name, Team.key)


def state_select() -> Select:
    return select(
        WorkflowState.id,
        WorkflowState.name,
        WorkflowState.kind.label("state_type"),
        WorkflowState.position,
    )


def _comment_select() -> Select:
    return select(Comment.id, Comment.body, Comment.url, Comment.created_at)


def issue_base_select() -> Select:
    """Issue columns plus every to-one relation, all through outer joins."""

    return (
        select(
            Issue.id,
            Issue.team_id,
            Issue.identifier,
            Issue.number,
            Issue.title,
            Issue.url,
            Issue.description,
            Issue.archived,
            Issue.created_at,
            Issue.updated_at,
            WorkflowState.id.label("ws_id"),
            WorkflowState.name.label("ws_name"),
            WorkflowState.kind.label("ws_type"),
            WorkflowState.position.label("ws_position"),
            Project.id.label("p_id"),
            Project.name.label("p_name"),
            Project.slug_id.label("p_slug_id"),
            Project.state.label("p_state"),
            Project.archived_at.label("p_archived_at"),
            Project.url.label("p_url"),
            User.id.label("u_id"),
            User.name.label("u_name"),
            User.email.label("u_email"),
        )
        .select_from(Issue)
        .outerjoin(WorkflowState, WorkflowState.id == Issue.state_id)
        .outerjoin(Project, Project.id == Issue.project_id)
        .outerjoin(User, User.id == Issue.assignee_id)
        .outerjoin(Team, Team.id == Issue.team_id)
    )


def fetch_issues(ctx: OperationContext, compiled: CompiledFilter, limit: int) -> Connection[IssueNode]:
    stmt = compiled.apply(issue_base_select(), ISSUE_COLUMNS)
    stmt = stmt.order_by(desc(Issue.updated_at), desc(Issue.id)).limit(limit)
    rows = ctx.db.execute(stmt).all()
    return Connection[IssueNode](nodes=[issue_from_row(row, ctx) for row in rows])


def fetch_issue(ctx: OperationContext, issue_id: str) -> Optional[IssueNode]:
    """Single issue by id, archived or not; ``None`` when no row matches."""

    row = ctx.db.execute(issue_base_select().where(Issue.id == issue_id)).first()
    return issue_from_row(row, ctx) if row is not None else None

