from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

if TYPE_CHECKING:
    from ..core.config import AppSettings


class OperationContext:
    """Everything one query or mutation needs: storage, settings, auth verdict.

    The transport evaluates the authorization gate once per request and
    records the outcome here; resolvers re-check it through
    ``ensure_authorized`` before touching storage.
    """

    def __init__(
        self,
        *,
        db: Session,
        settings: "AppSettings",
        authorized: bool,
        principal: str | None = None,
    ) -> None:
        self.db = db
        self.settings = settings
        self.authorized = authorized
        self.principal = principal

    @property
    def base_url(self) -> str:
        return self.settings.BASE_URL
