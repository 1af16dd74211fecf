from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Text

from ..db.session import Base


class Team(Base):
    """Owner of issues and workflow states; ``key`` prefixes issue identifiers."""

    __tablename__ = "teams"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    key = Column(Text, nullable=False, unique=True)
    created_at = Column(Text, nullable=False)


class TeamMember(Base):
    __tablename__ = "team_members"

    team_id = Column(Text, ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Text, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)


__all__ = ["Team", "TeamMember"]
