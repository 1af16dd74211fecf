from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Text

from ..db.session import Base


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Text, primary_key=True)
    issue_id = Column(Text, ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True)
    body = Column(Text, nullable=False)
    url = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)


__all__ = ["Comment"]
