from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Text

from ..db.session import Base

DEFAULT_PROJECT_STATE = "planned"


class Project(Base):
    """Container of issues shared by one or more teams."""

    __tablename__ = "projects"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    slug_id = Column(Text, nullable=False, unique=True)
    state = Column(Text, nullable=True)
    archived_at = Column(Text, nullable=True)
    url = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)


class ProjectTeam(Base):
    __tablename__ = "project_teams"

    project_id = Column(Text, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True)
    team_id = Column(Text, ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True)


__all__ = ["DEFAULT_PROJECT_STATE", "Project", "ProjectTeam"]
