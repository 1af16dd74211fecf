"""The query/mutation surface, addressable by field name.

``OPERATIONS`` maps each top-level field (``issues``, ``issueCreate`` ...) to
the resolver that implements it and to a pydantic model describing its
arguments, so a transport can hand over raw JSON variables and get typed
inputs validated before any resolver runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from pydantic import ValidationError

from ..core.errors import ValidationFailedError
from ..schemas.base import CamelModel
from ..schemas.comment import CommentCreateInput
from ..schemas.filters import (
    IssueOrderBy,
    IssuesFilter,
    ProjectsFilter,
    TeamsFilter,
    WorkflowStatesFilter,
)
from ..schemas.issue import IssueCreateInput, IssueUpdateInput
from ..schemas.project import AdminImportProjectInput, ProjectCreateInput
from ..services.context import OperationContext
from .mutations import MutationRoot
from .queries import QueryRoot

QUERY = "query"
MUTATION = "mutation"


class NoArguments(CamelModel):
    pass


class ListArguments(CamelModel):
    first: Optional[int] = None


class TeamsArguments(ListArguments):
    filter: Optional[TeamsFilter] = None


class ProjectsArguments(ListArguments):
    filter: Optional[ProjectsFilter] = None


class IssuesArguments(ListArguments):
    filter: Optional[IssuesFilter] = None
    order_by: Optional[IssueOrderBy] = None


class WorkflowStatesArguments(CamelModel):
    filter: Optional[WorkflowStatesFilter] = None


class IdArguments(CamelModel):
    id: str


class ProjectCreateArguments(CamelModel):
    input: ProjectCreateInput


class IssueCreateArguments(CamelModel):
    input: IssueCreateInput


class CommentCreateArguments(CamelModel):
    input: CommentCreateInput


class IssueUpdateArguments(IdArguments):
    input: IssueUpdateInput


class IssueAddLabelArguments(IdArguments):
    label_id: str


class AdminImportProjectArguments(CamelModel):
    input: AdminImportProjectInput


@dataclass(frozen=True)
class Operation:
    name: str
    kind: str
    arguments: type[CamelModel]
    resolve: Callable[..., Any]

    def parse(self, variables: Optional[Mapping[str, Any]]) -> dict[str, Any]:
        try:
            args = self.arguments.model_validate(dict(variables or {}))
        except ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise ValidationFailedError(f"invalid arguments for {self.name}: {location} {first['msg']}".strip()) from exc
        return {name: getattr(args, name) for name in type(args).model_fields}

    def __call__(self, ctx: OperationContext, variables: Optional[Mapping[str, Any]] = None) -> Any:
        return self.resolve(ctx, **self.parse(variables))


query_root = QueryRoot()
mutation_root = MutationRoot()

OPERATIONS: dict[str, Operation] = {
    op.name: op
    for op in (
        Operation("viewer", QUERY, NoArguments, query_root.viewer),
        Operation("teams", QUERY, TeamsArguments, query_root.teams),
        Operation("team", QUERY, IdArguments, query_root.team),
        Operation("projects", QUERY, ProjectsArguments, query_root.projects),
        Operation("project", QUERY, IdArguments, query_root.project),
        Operation("issue", QUERY, IdArguments, query_root.issue),
        Operation("issues", QUERY, IssuesArguments, query_root.issues),
        Operation("workflowStates", QUERY, WorkflowStatesArguments, query_root.workflow_states),
        Operation("projectCreate", MUTATION, ProjectCreateArguments, mutation_root.project_create),
        Operation("issueCreate", MUTATION, IssueCreateArguments, mutation_root.issue_create),
        Operation("commentCreate", MUTATION, CommentCreateArguments, mutation_root.comment_create),
        Operation("issueUpdate", MUTATION, IssueUpdateArguments, mutation_root.issue_update),
        Operation("issueArchive", MUTATION, IdArguments, mutation_root.issue_archive),
        Operation("issueAddLabel", MUTATION, IssueAddLabelArguments, mutation_root.issue_add_label),
        Operation("adminImportProject", MUTATION, AdminImportProjectArguments, mutation_root.admin_import_project),
    )
}

__all__ = ["MUTATION", "OPERATIONS", "Operation", "QUERY", "MutationRoot", "QueryRoot"]
