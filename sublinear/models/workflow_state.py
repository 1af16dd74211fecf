from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Text, UniqueConstraint

from ..db.session import Base

STATE_TYPES = ("unstarted", "started", "completed", "canceled")


class WorkflowState(Base):
    """One rung of a team's workflow ladder, ordered by ``position``."""

    __tablename__ = "workflow_states"
    __table_args__ = (
        UniqueConstraint("team_id", "name", name="uq_workflow_states_team_name"),
        CheckConstraint(
            "type IN (" + ", ".join(f"'{kind}'" for kind in STATE_TYPES) + ")",
            name="ck_workflow_states_type",
        ),
    )

    id = Column(Text, primary_key=True)
    team_id = Column(Text, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    # Column is called ``type`` in storage to match the hosted API field.
    kind = Column("type", Text, nullable=False)
    position = Column(Integer, nullable=False)


__all__ = ["STATE_TYPES", "WorkflowState"]
