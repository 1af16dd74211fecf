"""Tests for issue creation, updates, labels, comments and lazy relations."""

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sublinear.core.config import AppSettings
from sublinear.core.errors import ConstraintViolationError, NotFoundError, UnauthorizedError, ValidationFailedError
from sublinear.crud.comments import create_comment
from sublinear.crud.issues import add_label, archive_issue, create_issue, get_issue, list_issues, update_issue
from sublinear.db.migrate import SEED_TEAM_ID, bootstrap
from sublinear.db.session import make_engine, make_sessionmaker
from sublinear.models import Issue, IssueLabel, Label, Team, WorkflowState
from sublinear.resolvers import QueryRoot
from sublinear.schemas.comment import CommentCreateInput
from sublinear.schemas.filters import IssuesFilter
from sublinear.schemas.issue import IssueCreateInput, IssueUpdateInput
from sublinear.services.context import OperationContext
from sublinear.services.graph import IssueNode, issue_from_row


@pytest.fixture()
def ctx():
    engine = make_engine("sqlite://")
    settings = AppSettings(_env_file=None, REQUIRE_AUTH=False, BASE_URL="http://test.local/")
    bootstrap(engine, settings)
    session = make_sessionmaker(engine)()
    try:
        yield OperationContext(db=session, settings=settings, authorized=True)
    finally:
        session.close()
        engine.dispose()


def _issue(ctx, title="Fix the thing", **fields):
    return create_issue(ctx, IssueCreateInput(team_id=SEED_TEAM_ID, title=title, **fields))


def _state_id(ctx, name, team_id=SEED_TEAM_ID):
    return ctx.db.execute(
        select(WorkflowState.id).where(WorkflowState.team_id == team_id, WorkflowState.name == name)
    ).scalar_one()


def _add_team(ctx, team_id="team_ops", key="OPS"):
    ctx.db.add(Team(id=team_id, name="Ops", key=key, created_at="2024-01-01T00:00:00+00:00"))
    ctx.db.flush()
    ctx.db.add(WorkflowState(id=f"{team_id}_todo", team_id=team_id, name="Todo", kind="unstarted", position=0))
    ctx.db.commit()


def test_create_issue_allocates_numbers_identifiers_and_default_state(ctx):
    first = _issue(ctx, "First", description="details")
    second = _issue(ctx, "Second")

    assert (first.number, first.identifier) == (1, "SYN-1")
    assert (second.number, second.identifier) == (2, "SYN-2")
    assert first.url == "http://test.local/issue/SYN-1"
    assert first.state.name == "Backlog"
    assert first.state.type == "unstarted"
    assert first.description == "details"
    assert first.archived is False
    assert first.project is None
    assert first.assignee is None
    assert first.created_at == first.updated_at


def test_issue_numbers_are_per_team(ctx):
    _add_team(ctx)
    _issue(ctx)
    ops = create_issue(ctx, IssueCreateInput(team_id="team_ops", title="Ops work"))
    assert ops.identifier == "OPS-1"
    assert ops.state.name == "Todo"


def test_create_issue_rejects_unknown_references(ctx):
    with pytest.raises(ValidationFailedError, match="team not found: nope"):
        create_issue(ctx, IssueCreateInput(team_id="nope", title="x"))
    with pytest.raises(ValidationFailedError, match="project not found: missing"):
        _issue(ctx, project_id="missing")
    assert ctx.db.execute(select(func.count()).select_from(Issue)).scalar_one() == 0


def test_list_issues_excludes_archived_and_applies_filters(ctx):
    keep = _issue(ctx, "Keep")
    gone = _issue(ctx, "Gone")

    assert archive_issue(ctx, gone.id) is True
    assert archive_issue(ctx, "issue_missing") is False

    listed = list_issues(ctx)
    assert [node.id for node in listed.nodes] == [keep.id]

    # Archived issues stay reachable by id.
    archived = get_issue(ctx, gone.id)
    assert archived is not None and archived.archived is True

    by_number = list_issues(ctx, IssuesFilter.model_validate({"number": {"in": [1, 2]}}))
    assert [node.identifier for node in by_number.nodes] == ["SYN-1"]

    by_state = list_issues(ctx, IssuesFilter.model_validate({"state": {"name": {"neq": "Backlog"}}}))
    assert by_state.nodes == []

    by_team = list_issues(ctx, IssuesFilter.model_validate({"team": {"key": {"eq": "SYN"}}}))
    assert len(by_team.nodes) == 1

    absent = list_issues(ctx, IssuesFilter.model_validate({"team": {"id": {"eq": "absent-team"}}}))
    assert absent.nodes == []


def test_list_issues_orders_by_update_and_limits(ctx):
    issues = [_issue(ctx, f"Issue {n}") for n in range(3)]
    ctx.db.execute(Issue.__table__.update().where(Issue.id == issues[0].id).values(updated_at="2999-01-01T00:00:00"))
    ctx.db.commit()

    listed = list_issues(ctx, first=2)
    assert len(listed.nodes) == 2
    assert listed.nodes[0].id == issues[0].id


def test_update_issue_changes_only_given_fields(ctx):
    issue = _issue(ctx, "Old", description="keep me")
    done_id = _state_id(ctx, "Done")

    updated = update_issue(ctx, issue.id, IssueUpdateInput(title="New", state_id=done_id))

    assert updated.title == "New"
    assert updated.description == "keep me"
    assert updated.state.id == done_id
    assert updated.state.name == "Done"
    assert updated.updated_at >= issue.updated_at


def test_update_issue_validation(ctx):
    _add_team(ctx)
    issue = _issue(ctx)

    with pytest.raises(NotFoundError) as excinfo:
        update_issue(ctx, "issue_missing", IssueUpdateInput(title="x"))
    assert excinfo.value.message == "Entity not found: Issue"

    with pytest.raises(ValidationFailedError):
        update_issue(ctx, issue.id, IssueUpdateInput(state_id="state_nope"))
    with pytest.raises(ValidationFailedError):
        update_issue(ctx, issue.id, IssueUpdateInput(state_id="team_ops_todo"))

    assert get_issue(ctx, issue.id).state.name == "Backlog"


def test_add_label_creates_label_once_and_links_idempotently(ctx):
    issue = _issue(ctx)

    assert add_label(ctx, issue.id, "bug") is True
    assert add_label(ctx, issue.id, "bug") is True
    assert add_label(ctx, "issue_missing", "bug") is False

    assert ctx.db.get(Label, "bug").name == "bug"
    assert ctx.db.execute(select(func.count()).select_from(IssueLabel)).scalar_one() == 1
    assert [(label.id, label.name) for label in issue.labels().nodes] == [("bug", "bug")]


def test_comments_resolve_lazily(ctx):
    issue = _issue(ctx)
    assert issue.comments().nodes == []

    comment = create_comment(ctx, CommentCreateInput(issue_id=issue.id, body="first!"))
    assert comment.url == f"http://test.local/comment/{comment.id}"

    nodes = issue.comments().nodes
    assert [(node.id, node.body) for node in nodes] == [(comment.id, "first!")]

    with pytest.raises(ValidationFailedError, match="issue not found: nope"):
        create_comment(ctx, CommentCreateInput(issue_id="nope", body="x"))


def test_issue_team_resolves_lazily(ctx):
    issue = _issue(ctx)
    team = issue.team()
    assert (team.id, team.key) == (SEED_TEAM_ID, "SYN")
    assert [node.identifier for node in team.issues().nodes] == ["SYN-1"]
    assert [state.name for state in team.states().nodes][:2] == ["Backlog", "In Progress"]
    assert [member.name for member in team.members().nodes] == ["Sublinear Dev"]


def test_missing_workflow_state_falls_back_to_placeholder(ctx):
    row = SimpleNamespace(
        _mapping={
            "id": "issue_x",
            "team_id": SEED_TEAM_ID,
            "identifier": "SYN-9",
            "number": 9,
            "title": "Orphan",
            "url": "http://test.local/issue/SYN-9",
            "description": None,
            "archived": 0,
            "created_at": None,
            "updated_at": None,
            "ws_id": None,
            "ws_name": None,
            "ws_type": None,
            "ws_position": None,
            "p_id": None,
            "p_name": None,
            "p_slug_id": None,
            "p_state": None,
            "p_archived_at": None,
            "p_url": None,
            "u_id": None,
            "u_name": None,
            "u_email": None,
        }
    )
    issue = issue_from_row(row, ctx)
    assert (issue.state.id, issue.state.name) == ("state_missing", "Backlog")


def test_lazy_fields_require_a_bound_authorized_context(ctx):
    issue = _issue(ctx)

    unbound = IssueNode.model_validate(issue.model_dump())
    with pytest.raises(RuntimeError):
        unbound.labels()

    denied = OperationContext(db=ctx.db, settings=ctx.settings, authorized=False)
    with pytest.raises(UnauthorizedError):
        issue.bind(denied).comments()


def test_queries_check_authorization_first(ctx):
    denied = OperationContext(db=ctx.db, settings=ctx.settings, authorized=False)
    queries = QueryRoot()
    with pytest.raises(UnauthorizedError):
        queries.issues(denied)
    with pytest.raises(UnauthorizedError):
        queries.viewer(denied)
    with pytest.raises(NotFoundError, match="Entity not found: Issue"):
        queries.issue(ctx, "issue_missing")
    assert queries.team(ctx, "team_missing") is None


def test_racing_onto_a_taken_issue_number_is_a_retryable_rejection(ctx, monkeypatch):
    first = _issue(ctx)
    # Another writer already took the number this allocation settles on.
    monkeypatch.setattr("sublinear.crud.issues.next_issue_number", lambda db, team_id: first.number)

    with pytest.raises(ConstraintViolationError) as excinfo:
        _issue(ctx, title="Loser")

    assert excinfo.value.retryable is True
    assert excinfo.value.code == "constraint_violation"
    assert ctx.db.execute(select(func.count()).select_from(Issue)).scalar_one() == 1
    monkeypatch.undo()
    assert _issue(ctx, title="Retry").number == first.number + 1
