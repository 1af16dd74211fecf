from __future__ import annotations

from ..services.graph import CommentNode
from .base import CamelModel, MutationPayload


class CommentCreateInput(CamelModel):
    issue_id: str
    body: str


class CommentCreatePayload(MutationPayload):
    comment: CommentNode
