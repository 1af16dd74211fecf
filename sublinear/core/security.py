"""The single authorization decision shared by every query and mutation."""

from __future__ import annotations

import hmac
from typing import TYPE_CHECKING, Protocol

from .errors import UnauthorizedError

if TYPE_CHECKING:
    from .config import AppSettings

BEARER_PREFIX = "Bearer "


class AuthorizedContext(Protocol):
    authorized: bool


def _matches(provided: str, expected: str) -> bool:
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def is_authorized(authorization: str | bytes | None, settings: "AppSettings") -> bool:
    """Decide whether a request carrying ``authorization`` may proceed.

    With ``REQUIRE_AUTH`` off everything passes. Otherwise the header must be
    present, non-blank and printable ASCII. When an API key is configured the
    header must equal the key verbatim or in ``Bearer <key>`` form; without a
    key any such credential is accepted.
    """

    if not settings.REQUIRE_AUTH:
        return True
    if authorization is None:
        return False
    if isinstance(authorization, bytes):
        try:
            authorization = authorization.decode("ascii")
        except UnicodeDecodeError:
            return False
    credential = authorization.strip()
    if not credential:
        return False
    # Transports hand over latin-1 decoded text; anything outside visible ASCII is unparsable.
    if not credential.isascii() or not credential.isprintable():
        return False
    expected = settings.API_KEY
    if expected:
        return _matches(credential, expected) or _matches(credential, f"{BEARER_PREFIX}{expected}")
    return True


def ensure_authorized(ctx: AuthorizedContext) -> None:
    """Raise ``UnauthorizedError`` unless the operation context was admitted."""

    if not ctx.authorized:
        raise UnauthorizedError()
