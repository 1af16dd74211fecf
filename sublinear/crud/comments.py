from __future__ import annotations

from ..core.errors import ValidationFailedError
from ..core.ids import build_url, new_opaque_id, utcnow_iso
from ..db.session import commit
from ..models.comment import Comment
from ..schemas.comment import CommentCreateInput
from ..services.context import OperationContext
from ..services.graph import CommentNode
from .issues import issue_exists


def create_comment(ctx: OperationContext, payload: CommentCreateInput) -> CommentNode:
    if not issue_exists(ctx, payload.issue_id):
        raise ValidationFailedError(f"issue not found: {payload.issue_id}")
    comment_id = new_opaque_id("comment")
    comment = Comment(
        id=comment_id,
        issue_id=payload.issue_id,
        body=payload.body,
        url=build_url(ctx.base_url, "comment", comment_id),
        created_at=utcnow_iso(),
    )
    ctx.db.add(comment)
    commit(ctx.db)
    return CommentNode(
        id=comment.id,
        body=comment.body,
        url=comment.url,
        created_at=comment.created_at,
    ).bind(ctx)
