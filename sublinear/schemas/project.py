"""Pydantic schemas for project mutations."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from ..services.graph import ProjectNode
from .base import CamelModel, MutationPayload


class ProjectCreateInput(CamelModel):
    team_ids: list[str] = Field(default_factory=list)
    name: str


class AdminImportProjectInput(CamelModel):
    id: str
    name: str
    slug_id: str
    state: Optional[str] = None
    archived_at: Optional[str] = None
    url: str


class ProjectCreatePayload(MutationPayload):
    project: ProjectNode


class AdminImportProjectPayload(MutationPayload):
    project: ProjectNode
