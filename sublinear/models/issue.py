from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer, Text, UniqueConstraint

from ..db.session import Base


class Issue(Base):
    """A unit of work. ``identifier`` is always ``{team.key}-{number}``."""

    __tablename__ = "issues"
    __table_args__ = (UniqueConstraint("team_id", "number", name="uq_issues_team_number"),)

    id = Column(Text, primary_key=True)
    team_id = Column(Text, ForeignKey("teams.id"), nullable=False, index=True)
    project_id = Column(Text, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    number = Column(Integer, nullable=False)
    identifier = Column(Text, nullable=False, unique=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    state_id = Column(Text, ForeignKey("workflow_states.id"), nullable=False)
    assignee_id = Column(Text, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    archived = Column(Integer, nullable=False, default=0)
    url = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)


__all__ = ["Issue"]
