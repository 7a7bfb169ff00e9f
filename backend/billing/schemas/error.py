from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    error_code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
