"""
Todo operations for the HTTP layer.

Each operation is one read-modify-write transaction against the
cache-aside repository, run under a single process-wide gate so that no two
operations interleave, whichever users they concern. The gate is held
across Redis calls: a slow Redis stalls every request. It does nothing
across processes; running several instances reintroduces lost updates.

Audit events are published after the gate is released.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List

import structlog

from .audit import AuditPublisher
from .errors import InternalError, InvalidContentError, TodoAppError, TodoNotFoundError
from .models import AuditOperation, Todo
from .repositories import CacheAsideRepository

logger = structlog.get_logger(__name__)


def _validate_content(content: Any) -> str:
    if not isinstance(content, str):
        raise InvalidContentError()
    stripped = content.strip()
    if not stripped:
        raise InvalidContentError()
    return stripped


# PUBLIC_INTERFACE
class TodoService:
    """List, create and delete todos for an already-authenticated user."""

    def __init__(self, repository: CacheAsideRepository, publisher: AuditPublisher) -> None:
        self._repository = repository
        self._publisher = publisher
        # process-wide, not per user
        self._gate = asyncio.Lock()

    @property
    def gate(self) -> asyncio.Lock:
        return self._gate

    @asynccontextmanager
    async def _guarded(self, operation: str, user_id: str) -> AsyncIterator[None]:
        async with self._gate:
            try:
                yield
            except TodoAppError:
                raise
            except Exception as exc:
                logger.error("todo_operation_failed", operation=operation, user_id=user_id, exc_info=True)
                raise InternalError() from exc

    async def list_todos(self, user_id: str) -> List[Todo]:
        """Return the user's todos ordered by id."""
        async with self._guarded("list", user_id):
            collection = await self._repository.load(user_id)
            return [collection.items[todo_id] for todo_id in sorted(collection.items)]

    async def create_todo(self, user_id: str, content: Any) -> Todo:
        """
        Append a todo with the next id and return it.

        Raises:
            InvalidContentError: content is not a string or is blank after trimming.
        """
        async with self._guarded("create", user_id):
            text = _validate_content(content)
            collection = await self._repository.load(user_id)
            todo = Todo(id=collection.last_inserted_id, content=text)
            collection.items[todo.id] = todo
            collection.last_inserted_id += 1
            await self._repository.save(user_id, collection)

        await self._publisher.publish(AuditOperation.CREATE, user_id, todo.id)
        return todo

    async def delete_todo(self, user_id: str, task_id: int) -> None:
        """
        Remove a todo by id.

        Raises:
            TodoNotFoundError: the id is not in the user's collection.
        """
        async with self._guarded("delete", user_id):
            collection = await self._repository.load(user_id)
            if task_id not in collection.items:
                raise TodoNotFoundError()
            del collection.items[task_id]
            await self._repository.save(user_id, collection)

        await self._publisher.publish(AuditOperation.DELETE, user_id, task_id)
