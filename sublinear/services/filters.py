"""Compile optional filter inputs into ordered, parameterized predicates.

A compiled filter is a list of ``Predicate(field, operator, value)`` entries
joined with AND. Field names are storage-agnostic dotted names
(``issue.team_id``, ``state.name`` ...); the caller maps them to columns when
applying the filter, and every value travels as a bound parameter.

Policy shared by every listing:

* absent branches add nothing;
* empty strings in ``eq``/``neq`` mean "not specified";
* an empty ``in`` set is skipped, so it matches everything;
* archived issues are excluded by an implicit leading predicate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from sqlalchemy import ColumnElement, Select

from ..schemas.filters import (
    IdFilter,
    IssuesFilter,
    NumberFilter,
    ProjectsFilter,
    StringFilter,
    TeamFilter,
    TeamsFilter,
    WorkflowStatesFilter,
)
from ..core.logging import log_event

DEFAULT_LIMIT = 50
MIN_LIMIT = 1
MAX_LIMIT = 500

logger = logging.getLogger("sublinear.filters")

EQ = "eq"
NEQ = "neq"
IN = "in"

_SQL_OPERATORS = {EQ: "=", NEQ: "<>"}

_COLUMN_OPERATORS: dict[str, Callable[[Any, Any], ColumnElement]] = {
    EQ: lambda column, value: column == value,
    NEQ: lambda column, value: column != value,
    IN: lambda column, value: column.in_(value),
}


def clamp_limit(first: Optional[int]) -> int:
    """Resolve a ``first`` argument to a row limit in ``[1, 500]``."""

    if first is None or first <= 0:
        return DEFAULT_LIMIT
    return max(MIN_LIMIT, min(first, MAX_LIMIT))


@dataclass(frozen=True)
class Predicate:
    field: str
    operator: str
    value: Any

    @property
    def params(self) -> tuple[Any, ...]:
        if self.operator == IN:
            return tuple(self.value)
        return (self.value,)

    def positional(self) -> str:
        if self.operator == IN:
            placeholders = ", ".join("?" for _ in self.value)
            return f"{self.field} IN ({placeholders})"
        return f"{self.field} {_SQL_OPERATORS[self.operator]} ?"


@dataclass
class CompiledFilter:
    predicates: list[Predicate] = field(default_factory=list)

    def add(self, field_name: str, operator: str, value: Any) -> None:
        self.predicates.append(Predicate(field_name, operator, value))

    @property
    def fields(self) -> list[str]:
        return [p.field for p in self.predicates]

    @property
    def params(self) -> list[Any]:
        ordered: list[Any] = []
        for predicate in self.predicates:
            ordered.extend(predicate.params)
        return ordered

    def positional_sql(self) -> str:
        """``a = ? AND b IN (?, ?)`` rendering, in the same order as ``params``."""

        return " AND ".join(p.positional() for p in self.predicates)

    def clauses(self, columns: Mapping[str, Any]) -> list[ColumnElement]:
        return [_COLUMN_OPERATORS[p.operator](columns[p.field], p.value) for p in self.predicates]

    def apply(self, stmt: Select, columns: Mapping[str, Any]) -> Select:
        clauses = self.clauses(columns)
        if clauses:
            log_event(logger, "filter.applied", level=logging.DEBUG, where=self.positional_sql(), params=self.params)
        return stmt.where(*clauses) if clauses else stmt

    def __bool__(self) -> bool:
        return bool(self.predicates)


def _add_string(out: CompiledFilter, field_name: str, value: Optional[StringFilter]) -> None:
    if value is None:
        return
    if value.eq:
        out.add(field_name, EQ, value.eq)
    if value.neq:
        out.add(field_name, NEQ, value.neq)


def _add_id(out: CompiledFilter, field_name: str, value: Optional[IdFilter]) -> None:
    if value is not None and value.eq:
        out.add(field_name, EQ, value.eq)


def _add_number_in(out: CompiledFilter, field_name: str, value: Optional[NumberFilter]) -> None:
    if value is None or not value.in_:
        return
    out.add(field_name, IN, [int(n) for n in value.in_])


def _add_team(out: CompiledFilter, id_field: str, team: Optional[TeamFilter]) -> None:
    if team is None:
        return
    _add_id(out, id_field, team.id)
    _add_string(out, "team.key", team.key)
    _add_string(out, "team.name", team.name)


def compile_issues_filter(issue_filter: Optional[IssuesFilter]) -> CompiledFilter:
    out = CompiledFilter()
    out.add("issue.archived", EQ, 0)
    if issue_filter is None:
        return out
    _add_team(out, "issue.team_id", issue_filter.team)
    if issue_filter.project is not None:
        _add_id(out, "issue.project_id", issue_filter.project.id)
        _add_string(out, "project.name", issue_filter.project.name)
    if issue_filter.state is not None:
        _add_string(out, "state.name", issue_filter.state.name)
    _add_number_in(out, "issue.number", issue_filter.number)
    return out


def compile_teams_filter(team_filter: Optional[TeamsFilter]) -> CompiledFilter:
    out = CompiledFilter()
    _add_team(out, "team.id", team_filter)
    return out


def compile_projects_filter(project_filter: Optional[ProjectsFilter]) -> CompiledFilter:
    out = CompiledFilter()
    if project_filter is not None:
        _add_id(out, "project.id", project_filter.id)
        _add_string(out, "project.name", project_filter.name)
    return out


def compile_workflow_states_filter(state_filter: Optional[WorkflowStatesFilter]) -> CompiledFilter:
    out = CompiledFilter()
    if state_filter is not None:
        _add_team(out, "state.team_id", state_filter.team)
    return out
