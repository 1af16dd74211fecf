"""Read-only operations. Every entry point passes the authorization gate first."""

from __future__ import annotations

from typing import Optional

from ..core.errors import NotFoundError
from ..core.security import ensure_authorized
from ..crud.issues import get_issue, list_issues
from ..crud.projects import get_project, list_projects
from ..crud.teams import get_team, list_teams
from ..crud.users import get_viewer
from ..crud.workflow_states import list_workflow_states
from ..schemas.filters import (
    IssueOrderBy,
    IssuesFilter,
    ProjectsFilter,
    TeamsFilter,
    WorkflowStatesFilter,
)
from ..services.context import OperationContext
from ..services.graph import (
    Connection,
    IssueNode,
    ProjectNode,
    TeamNode,
    ViewerNode,
    WorkflowStateNode,
)


class QueryRoot:
    def viewer(self, ctx: OperationContext) -> ViewerNode:
        ensure_authorized(ctx)
        return get_viewer(ctx)

    def teams(
        self,
        ctx: OperationContext,
        filter: Optional[TeamsFilter] = None,
        first: Optional[int] = None,
    ) -> Connection[TeamNode]:
        ensure_authorized(ctx)
        return list_teams(ctx, filter, first)

    def team(self, ctx: OperationContext, id: str) -> Optional[TeamNode]:
        # Unlike project/issue, a missing team resolves to null.
        ensure_authorized(ctx)
        return get_team(ctx, id)

    def projects(
        self,
        ctx: OperationContext,
        filter: Optional[ProjectsFilter] = None,
        first: Optional[int] = None,
    ) -> Connection[ProjectNode]:
        ensure_authorized(ctx)
        return list_projects(ctx, filter, first)

    def project(self, ctx: OperationContext, id: str) -> ProjectNode:
        ensure_authorized(ctx)
        project = get_project(ctx, id)
        if project is None:
            raise NotFoundError("Project")
        return project

    def issue(self, ctx: OperationContext, id: str) -> IssueNode:
        ensure_authorized(ctx)
        issue = get_issue(ctx, id)
        if issue is None:
            raise NotFoundError("Issue")
        return issue

    def issues(
        self,
        ctx: OperationContext,
        filter: Optional[IssuesFilter] = None,
        first: Optional[int] = None,
        order_by: Optional[IssueOrderBy] = None,
    ) -> Connection[IssueNode]:
        ensure_authorized(ctx)
        return list_issues(ctx, filter, first, order_by)

    def workflow_states(
        self,
        ctx: OperationContext,
        filter: Optional[WorkflowStatesFilter] = None,
    ) -> Connection[WorkflowStateNode]:
        ensure_authorized(ctx)
        return list_workflow_states(ctx, filter)
