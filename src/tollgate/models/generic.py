"""Generic JSON payload accepted for free-form validation."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class GenericPayload(BaseModel):
    """Flexible payload: a typed envelope around arbitrary data."""

    id: str | None = None
    type: str = Field(min_length=1, max_length=100)
    timestamp: datetime | None = None
    data: dict[str, Any]
    metadata: dict[str, str] = Field(default_factory=dict)
    tags: list[Annotated[str, Field(min_length=1, max_length=50)]] = Field(
        default_factory=list
    )
    status: Literal["pending", "processing", "completed", "failed"] | None = None
