"""Pydantic models for the optional, nested filter arguments of listings."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field


class FilterModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class StringFilter(FilterModel):
    eq: Optional[str] = None
    neq: Optional[str] = None


class IdFilter(FilterModel):
    eq: Optional[str] = None


# Issue numbers are stored as integers; only finite values that floats represent exactly pass.
IssueNumber = Annotated[float, Field(allow_inf_nan=False, ge=-(2**53), le=2**53)]


class NumberFilter(FilterModel):
    in_: Optional[list[IssueNumber]] = Field(default=None, alias="in")


class TeamFilter(FilterModel):
    id: Optional[IdFilter] = None
    key: Optional[StringFilter] = None
    name: Optional[StringFilter] = None


class ProjectFilter(FilterModel):
    id: Optional[IdFilter] = None
    name: Optional[StringFilter] = None


class StateFilter(FilterModel):
    name: Optional[StringFilter] = None


class IssuesFilter(FilterModel):
    team: Optional[TeamFilter] = None
    project: Optional[ProjectFilter] = None
    state: Optional[StateFilter] = None
    number: Optional[NumberFilter] = None


class TeamsFilter(TeamFilter):
    pass


class ProjectsFilter(ProjectFilter):
    pass


class WorkflowStatesFilter(FilterModel):
    team: Optional[TeamFilter] = None


class IssueOrderBy(str, Enum):
    # Issues are always listed by last update; the argument is accepted as a hint.
    UPDATED_AT = "updatedAt"
