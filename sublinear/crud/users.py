from __future__ import annotations

from sqlalchemy import select

from ..core.errors import SublinearError
from ..models.user import User
from ..services.context import OperationContext
from ..services.graph import ViewerNode, viewer_from_row


def get_viewer(ctx: OperationContext) -> ViewerNode:
    """The earliest created user stands in for the authenticated viewer."""

    row = ctx.db.execute(
        select(User.id, User.name, User.email).order_by(User.created_at, User.id).limit(1)
    ).first()
    if row is None:
        raise SublinearError("no viewer configured")
    return viewer_from_row(row).bind(ctx)
