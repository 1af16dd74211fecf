"""Project reads, creation and the 1:1 slug-owning admin import."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import delete, desc, select

from ..core.errors import DecodeError, ValidationFailedError
from ..core.ids import build_url, new_opaque_id, utcnow_iso
from ..db.session import commit, flush
from ..models.project import DEFAULT_PROJECT_STATE, Project, ProjectTeam
from ..schemas.filters import ProjectsFilter
from ..schemas.project import AdminImportProjectInput, ProjectCreateInput
from ..services.allocator import allocate_project_slug
from ..services.context import OperationContext
from ..services.filters import clamp_limit, compile_projects_filter
from ..services.graph import Connection, ProjectNode, project_from_row
from .teams import missing_team_ids

PROJECT_COLUMNS: dict[str, Any] = {
    "project.id": Project.id,
    "project.name": Project.name,
}


def _project_select():
    return select(
        Project.id,
        Project.name,
        Project.slug_id,
        Project.state,
        Project.archived_at,
        Project.url,
    )


def list_projects(ctx: OperationContext, project_filter: Optional[ProjectsFilter] = None, first: Optional[int] = None):
    compiled = compile_projects_filter(project_filter)
    stmt = compiled.apply(_project_select(), PROJECT_COLUMNS)
    stmt = stmt.order_by(desc(Project.created_at), desc(Project.id)).limit(clamp_limit(first))
    rows = ctx.db.execute(stmt).all()
    return Connection[ProjectNode](nodes=[project_from_row(row).bind(ctx) for row in rows])


def get_project(ctx: OperationContext, project_id: str) -> ProjectNode | None:
    row = ctx.db.execute(_project_select().where(Project.id == project_id)).first()
    return project_from_row(row).bind(ctx) if row is not None else None


def create_project(ctx: OperationContext, payload: ProjectCreateInput) -> ProjectNode:
    """Create a project linked to every team in ``payload.team_ids``.

    All referenced teams are checked before anything is written, so a bad
    team id never leaves a half-linked project behind.
    """

    if not payload.team_ids:
        raise ValidationFailedError("teamIds must contain at least one team id")
    team_ids = list(dict.fromkeys(payload.team_ids))
    missing = missing_team_ids(ctx, team_ids)
    if missing:
        raise ValidationFailedError(f"team not found: {missing[0]}")

    db = ctx.db
    project_id = new_opaque_id("project")
    project = Project(
        id=project_id,
        name=payload.name,
        slug_id=allocate_project_slug(db, payload.name),
        state=DEFAULT_PROJECT_STATE,
        archived_at=None,
        url=build_url(ctx.base_url, "project", project_id),
        created_at=utcnow_iso(),
    )
    db.add(project)
    flush(db)
    for team_id in team_ids:
        db.add(ProjectTeam(project_id=project_id, team_id=team_id))
    commit(db)

    created = get_project(ctx, project_id)
    if created is None:
        raise DecodeError("failed to load created project")
    return created


def import_project(ctx: OperationContext, payload: AdminImportProjectInput) -> ProjectNode:
    """Upsert a project by id, taking ``slug_id`` over from any other project.

    Imports mirror projects from an upstream workspace, where a slug names
    exactly one project; a local project holding the same slug under another
    id is deleted first.
    """

    db = ctx.db
    db.execute(delete(Project).where(Project.slug_id == payload.slug_id, Project.id != payload.id))

    project = db.get(Project, payload.id)
    if project is None:
        project = Project(id=payload.id, created_at=utcnow_iso())
        db.add(project)
    project.name = payload.name
    project.slug_id = payload.slug_id
    project.state = payload.state
    project.archived_at = payload.archived_at
    project.url = payload.url
    commit(db)

    imported = get_project(ctx, payload.id)
    if imported is None:
        raise DecodeError("failed to load imported project")
    return imported
