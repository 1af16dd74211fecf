from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select

from ..models.team import Team
from ..models.workflow_state import WorkflowState
from ..schemas.filters import WorkflowStatesFilter
from ..services.context import OperationContext
from ..services.filters import compile_workflow_states_filter
from ..services.graph import Connection, WorkflowStateNode, state_from_row, state_select

STATE_COLUMNS: dict[str, Any] = {
    "state.team_id": WorkflowState.team_id,
    "team.key": Team.key,
    "team.name": Team.name,
}


def list_workflow_states(ctx: OperationContext, state_filter: Optional[WorkflowStatesFilter] = None):
    compiled = compile_workflow_states_filter(state_filter)
    stmt = state_select().join(Team, Team.id == WorkflowState.team_id)
    stmt = compiled.apply(stmt, STATE_COLUMNS)
    stmt = stmt.order_by(WorkflowState.position, WorkflowState.team_id, WorkflowState.id)
    rows = ctx.db.execute(stmt).all()
    return Connection[WorkflowStateNode](nodes=[state_from_row(row).bind(ctx) for row in rows])


def default_state(ctx: OperationContext, team_id: str) -> WorkflowState | None:
    """Lowest-position state of the team: where new issues start."""

    return ctx.db.execute(
        select(WorkflowState)
        .where(WorkflowState.team_id == team_id)
        .order_by(WorkflowState.position, WorkflowState.id)
        .limit(1)
    ).scalars().first()
