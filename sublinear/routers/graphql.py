from __future__ import annotations

import logging
from typing import Any, Sequence

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from ..core.errors import SublinearError, ValidationFailedError, error_entry
from ..core.logging import log_event, operation_ctx_var
from ..core.security import ensure_authorized
from ..deps.auth import operation_context
from ..resolvers import OPERATIONS
from ..schemas.request import OperationRequest
from ..services.context import OperationContext
from ..services.graph import Connection, Node

logger = logging.getLogger("sublinear.graphql")

router = APIRouter(tags=["graphql"])


def render(value: Any, expand: Sequence[str] = ()) -> Any:
    """Dump a resolver result to camelCase JSON, resolving ``expand`` on nodes."""

    if isinstance(value, Node):
        data = value.model_dump(by_alias=True)
        for name in expand:
            data[name] = render(value.resolve_lazy(name))
        return data
    if isinstance(value, Connection):
        return {"nodes": [render(node, expand) for node in value.nodes]}
    if isinstance(value, BaseModel):
        data = value.model_dump(by_alias=True)
        for field_name, field in type(value).model_fields.items():
            inner = getattr(value, field_name)
            if isinstance(inner, (Node, Connection)):
                data[field.alias or field_name] = render(inner, expand)
        return data
    return value


def execute(ctx: OperationContext, request: OperationRequest) -> dict[str, Any]:
    ensure_authorized(ctx)
    operation = OPERATIONS.get(request.operation)
    if operation is None:
        raise ValidationFailedError(f"unknown operation: {request.operation}")
    if request.type is not None and request.type != operation.kind:
        raise ValidationFailedError(f"{request.operation} is a {operation.kind}, not a {request.type}")
    result = operation(ctx, request.variables)
    return {request.operation: render(result, request.expand)}


@router.post("/graphql")
def graphql(
    body: OperationRequest,
    request: Request,
    ctx: OperationContext = Depends(operation_context),
):
    request.state.operation = body.operation
    token = operation_ctx_var.set(body.operation)
    try:
        return {"data": execute(ctx, body)}
    except SublinearError as exc:
        ctx.db.rollback()
        log_event(logger, "operation.failed", code=exc.code, error=exc.message)
        return {"data": None, "errors": [error_entry(exc)]}
    except Exception as exc:
        ctx.db.rollback()
        logger.exception("operation.crashed")
        return {"data": None, "errors": [error_entry(exc)]}
    finally:
        operation_ctx_var.reset(token)
