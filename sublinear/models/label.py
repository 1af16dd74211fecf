from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Text

from ..db.session import Base


class Label(Base):
    """Workspace-wide label; not scoped to a team."""

    __tablename__ = "labels"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)


class IssueLabel(Base):
    __tablename__ = "issue_labels"

    issue_id = Column(Text, ForeignKey("issues.id", ondelete="CASCADE"), primary_key=True)
    label_id = Column(Text, ForeignKey("labels.id", ondelete="CASCADE"), primary_key=True)


__all__ = ["IssueLabel", "Label"]
