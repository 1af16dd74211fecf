"""Write operations. Each checks authorization, then validates references
before the first write."""

from __future__ import annotations

import logging

from ..core.logging import log_event
from ..core.security import ensure_authorized
from ..crud.comments import create_comment
from ..crud.issues import add_label, archive_issue, create_issue, update_issue
from ..crud.projects import create_project, import_project
from ..schemas.comment import CommentCreateInput, CommentCreatePayload
from ..schemas.issue import (
    IssueAddLabelPayload,
    IssueArchivePayload,
    IssueCreateInput,
    IssueCreatePayload,
    IssueUpdateInput,
    IssueUpdatePayload,
)
from ..schemas.project import (
    AdminImportProjectInput,
    AdminImportProjectPayload,
    ProjectCreateInput,
    ProjectCreatePayload,
)
from ..services.context import OperationContext

logger = logging.getLogger("sublinear.resolvers")


class MutationRoot:
    def project_create(self, ctx: OperationContext, input: ProjectCreateInput) -> ProjectCreatePayload:
        ensure_authorized(ctx)
        project = create_project(ctx, input)
        log_event(logger, "project.created", project_id=project.id, slug_id=project.slug_id)
        return ProjectCreatePayload(project=project)

    def issue_create(self, ctx: OperationContext, input: IssueCreateInput) -> IssueCreatePayload:
        ensure_authorized(ctx)
        issue = create_issue(ctx, input)
        log_event(logger, "issue.created", issue_id=issue.id, identifier=issue.identifier)
        return IssueCreatePayload(issue=issue)

    def comment_create(self, ctx: OperationContext, input: CommentCreateInput) -> CommentCreatePayload:
        ensure_authorized(ctx)
        comment = create_comment(ctx, input)
        log_event(logger, "comment.created", comment_id=comment.id, issue_id=input.issue_id)
        return CommentCreatePayload(comment=comment)

    def issue_update(self, ctx: OperationContext, id: str, input: IssueUpdateInput) -> IssueUpdatePayload:
        ensure_authorized(ctx)
        issue = update_issue(ctx, id, input)
        log_event(logger, "issue.updated", issue_id=issue.id, state_id=issue.state.id)
        return IssueUpdatePayload(issue=issue)

    def issue_archive(self, ctx: OperationContext, id: str) -> IssueArchivePayload:
        ensure_authorized(ctx)
        archived = archive_issue(ctx, id)
        log_event(logger, "issue.archived", issue_id=id, success=archived)
        return IssueArchivePayload(success=archived)

    def issue_add_label(self, ctx: OperationContext, id: str, label_id: str) -> IssueAddLabelPayload:
        ensure_authorized(ctx)
        added = add_label(ctx, id, label_id)
        log_event(logger, "issue.labelled", issue_id=id, label_id=label_id, success=added)
        return IssueAddLabelPayload(success=added)

    def admin_import_project(
        self, ctx: OperationContext, input: AdminImportProjectInput
    ) -> AdminImportProjectPayload:
        ensure_authorized(ctx)
        project = import_project(ctx, input)
        log_event(logger, "project.imported", project_id=project.id, slug_id=project.slug_id)
        return AdminImportProjectPayload(project=project)
