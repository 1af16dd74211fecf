"""Idempotent schema creation and seed data.

``bootstrap`` runs on every startup. Tables are created only when missing and
seed rows are inserted only when their existence check fails, so a restart
never duplicates or overwrites data an operator has since edited.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

from ..core.ids import new_opaque_id, utcnow_iso
from ..core.logging import log_event
from .session import Base

if TYPE_CHECKING:
    from ..core.config import AppSettings

logger = logging.getLogger("sublinear.bootstrap")

SEED_VIEWER_ID = "viewer_default"
SEED_TEAM_ID = "team_default"

# (name, type, position); the lowest position is the default for new issues.
WORKFLOW_LADDER: tuple[tuple[str, str, int], ...] = (
    ("Backlog", "unstarted", 0),
    ("In Progress", "started", 1),
    ("In Review", "started", 2),
    ("Done", "completed", 3),
    ("Canceled", "canceled", 4),
)


def _count(conn: Connection, sql: str, params: Mapping[str, Any] | None = None) -> int:
    value = conn.execute(text(sql), dict(params or {})).scalar()
    return int(value or 0)


def ensure_schema(engine: Engine) -> None:
    """Create every table that does not exist yet."""

    # Importing the models registers them with ``Base.metadata``.
    from .. import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def ensure_workflow_state(conn: Connection, team_id: str, name: str, kind: str, position: int) -> bool:
    """Insert the named state for ``team_id`` unless one already exists."""

    existing = _count(
        conn,
        "SELECT COUNT(*) FROM workflow_states WHERE team_id = :team_id AND name = :name",
        {"team_id": team_id, "name": name},
    )
    if existing:
        return False
    conn.execute(
        text(
            "INSERT INTO workflow_states (id, team_id, name, type, position) "
            "VALUES (:id, :team_id, :name, :type, :position)"
        ),
        {
            "id": new_opaque_id("state"),
            "team_id": team_id,
            "name": name,
            "type": kind,
            "position": position,
        },
    )
    return True


def seed_defaults(engine: Engine, settings: "AppSettings") -> None:
    """Seed the viewer, its team, their membership and the workflow ladder."""

    now = utcnow_iso()
    with engine.begin() as conn:
        if _count(conn, "SELECT COUNT(*) FROM users") == 0:
            conn.execute(
                text("INSERT INTO users (id, name, email, created_at) VALUES (:id, :name, :email, :created_at)"),
                {
                    "id": SEED_VIEWER_ID,
                    "name": settings.SEED_VIEWER_NAME,
                    "email": settings.SEED_VIEWER_EMAIL,
                    "created_at": now,
                },
            )
            log_event(logger, "bootstrap.seeded_viewer", user_id=SEED_VIEWER_ID)

        if _count(conn, "SELECT COUNT(*) FROM teams") == 0:
            conn.execute(
                text("INSERT INTO teams (id, name, key, created_at) VALUES (:id, :name, :key, :created_at)"),
                {
                    "id": SEED_TEAM_ID,
                    "name": settings.SEED_TEAM_NAME,
                    "key": settings.SEED_TEAM_KEY,
                    "created_at": now,
                },
            )
            log_event(logger, "bootstrap.seeded_team", team_id=SEED_TEAM_ID, key=settings.SEED_TEAM_KEY)

        # Operators may have replaced the seeded rows; only link what exists.
        viewer_present = _count(conn, "SELECT COUNT(*) FROM users WHERE id = :id", {"id": SEED_VIEWER_ID})
        team_present = _count(conn, "SELECT COUNT(*) FROM teams WHERE id = :id", {"id": SEED_TEAM_ID})
        if viewer_present and team_present:
            linked = _count(
                conn,
                "SELECT COUNT(*) FROM team_members WHERE team_id = :team_id AND user_id = :user_id",
                {"team_id": SEED_TEAM_ID, "user_id": SEED_VIEWER_ID},
            )
            if not linked:
                conn.execute(
                    text("INSERT INTO team_members (team_id, user_id) VALUES (:team_id, :user_id)"),
                    {"team_id": SEED_TEAM_ID, "user_id": SEED_VIEWER_ID},
                )

        if team_present:
            created = [
                name
                for name, kind, position in WORKFLOW_LADDER
                if ensure_workflow_state(conn, SEED_TEAM_ID, name, kind, position)
            ]
            if created:
                log_event(logger, "bootstrap.seeded_states", states=created)


def bootstrap(engine: Engine, settings: "AppSettings") -> None:
    """Bring a possibly empty store up to the minimum valid state."""

    ensure_schema(engine)
    seed_defaults(engine, settings)
