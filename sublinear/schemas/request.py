from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class OperationRequest(BaseModel):
    """One top-level field invocation posted to ``/graphql``.

    ``expand`` names relation fields on the returned node(s) to resolve one
    level deep, e.g. ``["labels", "comments"]`` on ``issues``.
    """

    model_config = ConfigDict(extra="forbid")

    operation: str = Field(min_length=1)
    type: Optional[Literal["query", "mutation"]] = None
    variables: dict[str, Any] = Field(default_factory=dict)
    expand: list[str] = Field(default_factory=list)
