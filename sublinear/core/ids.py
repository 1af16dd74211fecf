"""Identifier, slug and URL helpers shared by the storage layer."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from uuid import uuid4

DEFAULT_TEAM_KEY = "SYN"
DEFAULT_SLUG = "project"
OPAQUE_TOKEN_LENGTH = 12

_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")


def utcnow_iso() -> str:
    # Microseconds keep ``updated_at`` ordering stable for back-to-back writes.
    return datetime.now(tz=timezone.utc).isoformat(timespec="microseconds")


def new_opaque_id(prefix: str) -> str:
    """Return ``{prefix}_{12 hex chars}``; never checked against storage."""

    return f"{prefix}_{uuid4().hex[:OPAQUE_TOKEN_LENGTH]}"


def slugify(value: str) -> str:
    lowered = "".join(ch.lower() if ch.isascii() else "-" for ch in value)
    slug = _NON_ALNUM_RUN.sub("-", lowered).strip("-")
    return slug or DEFAULT_SLUG


def sanitize_team_key(value: str) -> str:
    key = "".join(ch for ch in value if ch.isascii() and ch.isalnum()).upper()
    return key or DEFAULT_TEAM_KEY


def issue_identifier(team_key: str, number: int) -> str:
    return f"{team_key}-{number}"


def build_url(base_url: str, kind: str, key: str) -> str:
    return f"{base_url.rstrip('/')}/{kind}/{key}"
