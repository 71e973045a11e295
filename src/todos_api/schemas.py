from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Request body for creating a todo.

    ``content`` is accepted as-is here; the service rejects anything that is
    not a non-blank string so invalid input is reported as a 400 with the
    same body whatever its type.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"content": "Buy groceries"}})

    content: Optional[Any] = Field(default=None, description="Todo text; must be a non-empty string")


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a todo item.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"id": 4, "content": "Buy groceries"}})

    id: int = Field(..., description="Identifier unique within the user's todo list")
    content: str = Field(..., description="Todo text")


# PUBLIC_INTERFACE
class ErrorOut(BaseModel):
    """Error body used for 4xx/5xx responses."""

    error: str = Field(..., description="Human-readable error message")
