from __future__ import annotations

from sqlalchemy import Column, Text

from ..db.session import Base


class User(Base):
    """A person; only the bootstrap seed creates these."""

    __tablename__ = "users"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)


__all__ = ["User"]
