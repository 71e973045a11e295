from __future__ import annotations

import time
from enum import Enum
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Seed entries every user starts with, and again after their collection expires.
DEFAULT_TODOS: Dict[int, str] = {
    1: "Create new todo",
    2: "Update me",
    3: "Delete example ones",
}


# PUBLIC_INTERFACE
class Todo(BaseModel):
    """
    A single todo item.

    Fields:
    - id: positive integer, unique within the owning collection
    - content: todo text; new todos are trimmed and non-empty, but stored
      entries written by other services may hold an empty string
    """

    id: int = Field(..., gt=0, description="Identifier unique within the user's collection")
    content: str = Field(..., description="Todo text")


# PUBLIC_INTERFACE
class TodoCollection(BaseModel):
    """
    A user's todo list as stored in the cache tiers.

    Serialized with the field names ``items`` and ``lastInsertedID`` so that
    entries written by other services sharing the cache stay readable.
    ``last_inserted_id`` is the next id to assign; it only ever grows, so
    ids are never reused after a delete.
    """

    model_config = ConfigDict(populate_by_name=True)

    items: Dict[int, Todo] = Field(default_factory=dict)
    last_inserted_id: int = Field(..., alias="lastInsertedID", gt=0)

    @model_validator(mode="after")
    def _keys_match_ids(self) -> "TodoCollection":
        for key, todo in self.items.items():
            if key != todo.id:
                raise ValueError(f"item key {key} does not match todo id {todo.id}")
        return self

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "TodoCollection":
        return cls.model_validate_json(raw)


# PUBLIC_INTERFACE
def default_collection() -> TodoCollection:
    """Build a fresh seed collection: ids 1-3 with fixed text, next id 4."""
    return TodoCollection(
        items={todo_id: Todo(id=todo_id, content=content) for todo_id, content in DEFAULT_TODOS.items()},
        last_inserted_id=max(DEFAULT_TODOS) + 1,
    )


class AuditOperation(str, Enum):
    CREATE = "CREATE"
    DELETE = "DELETE"


def _now_ms() -> int:
    return int(time.time() * 1000)


# PUBLIC_INTERFACE
class AuditEvent(BaseModel):
    """
    Audit record published for every successful create/delete.

    Wire format: ``{"opName", "username", "todoId", "ts"}`` where ``ts`` is
    milliseconds since the Unix epoch.
    """

    model_config = ConfigDict(populate_by_name=True)

    op_name: AuditOperation = Field(..., alias="opName")
    username: str
    todo_id: int = Field(..., alias="todoId")
    ts: int = Field(default_factory=_now_ms)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
