"""Pydantic schemas for issue mutations."""

from __future__ import annotations

from typing import Optional

from ..services.graph import IssueNode
from .base import CamelModel, MutationPayload


class IssueCreateInput(CamelModel):
    team_id: str
    project_id: Optional[str] = None
    title: str
    description: Optional[str] = None


class IssueUpdateInput(CamelModel):
    # ``None`` leaves the stored value untouched.
    title: Optional[str] = None
    description: Optional[str] = None
    state_id: Optional[str] = None


class IssueCreatePayload(MutationPayload):
    issue: IssueNode


class IssueUpdatePayload(MutationPayload):
    issue: IssueNode


class IssueArchivePayload(MutationPayload):
    pass


class IssueAddLabelPayload(MutationPayload):
    pass
