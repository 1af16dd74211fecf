from __future__ import annotations

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from ..core.config import AppSettings, get_settings
from ..core.logging import principal_ctx_var
from ..core.security import is_authorized
from ..db.session import get_db
from ..services.context import OperationContext


def _principal(settings: AppSettings) -> str:
    if not settings.REQUIRE_AUTH:
        return "anonymous"
    return "api-key" if settings.API_KEY else "token"


def _set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


async def operation_context(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_settings),
) -> OperationContext:
    """Evaluate the gate once and hand resolvers the verdict.

    A rejected request is not failed here: the operation itself reports
    ``Unauthorized`` so the response keeps the ``errors`` envelope.
    """

    authorized = is_authorized(authorization, settings)
    principal = _principal(settings) if authorized else None
    if principal is not None:
        _set_principal(request, principal)
    return OperationContext(db=db, settings=settings, authorized=authorized, principal=principal)
