from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select

from ..models.team import Team
from ..schemas.filters import TeamsFilter
from ..services.context import OperationContext
from ..services.filters import clamp_limit, compile_teams_filter
from ..services.graph import Connection, TeamNode, team_from_row, team_select

TEAM_COLUMNS: dict[str, Any] = {
    "team.id": Team.id,
    "team.key": Team.key,
    "team.name": Team.name,
}


def list_teams(ctx: OperationContext, team_filter: Optional[TeamsFilter] = None, first: Optional[int] = None):
    compiled = compile_teams_filter(team_filter)
    stmt = compiled.apply(team_select(), TEAM_COLUMNS)
    stmt = stmt.order_by(Team.name, Team.id).limit(clamp_limit(first))
    rows = ctx.db.execute(stmt).all()
    return Connection[TeamNode](nodes=[team_from_row(row).bind(ctx) for row in rows])


def get_team(ctx: OperationContext, team_id: str) -> TeamNode | None:
    row = ctx.db.execute(team_select().where(Team.id == team_id)).first()
    return team_from_row(row).bind(ctx) if row is not None else None


def missing_team_ids(ctx: OperationContext, team_ids: list[str]) -> list[str]:
    """Return the ids in ``team_ids`` with no matching team, in input order."""

    found = set(ctx.db.execute(select(Team.id).where(Team.id.in_(team_ids))).scalars())
    return [team_id for team_id in team_ids if team_id not in found]

