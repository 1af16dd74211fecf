"""Team-scoped issue numbers and globally unique project slugs.

Both allocations read current state and pick the next free value without a
transaction around the follow-up insert. Under concurrent writers two callers
can pick the same value; the ``UNIQUE`` constraints on ``issues.identifier``,
``issues(team_id, number)`` and ``projects.slug_id`` reject the second insert,
which surfaces as a retryable ``ConstraintViolationError``.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.ids import slugify
from ..models.issue import Issue
from ..models.project import Project

# First suffix tried after the bare slug is taken: "name", "name-2", "name-3" ...
FIRST_SLUG_SUFFIX = 2


def next_issue_number(db: Session, team_id: str) -> int:
    current = db.execute(
        select(func.coalesce(func.max(Issue.number), 0)).where(Issue.team_id == team_id)
    ).scalar_one()
    return int(current) + 1


def slug_taken(db: Session, slug: str) -> bool:
    found = db.execute(select(func.count()).select_from(Project).where(Project.slug_id == slug)).scalar_one()
    return found > 0


def allocate_project_slug(db: Session, name: str) -> str:
    base = slugify(name)
    candidate = base
    suffix = FIRST_SLUG_SUFFIX
    while slug_taken(db, candidate):
        candidate = f"{base}-{suffix}"
        suffix += 1
    return candidate
