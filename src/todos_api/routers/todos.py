from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request, Response, status

from ..auth import get_current_username
from ..errors import TodoNotFoundError
from ..schemas import ErrorOut, TodoCreate, TodoOut
from ..services import TodoService

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
)


def get_todo_service(request: Request) -> TodoService:
    """
    Dependency returning the process-wide TodoService created at startup.
    """
    return request.app.state.todo_service


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List Todos",
    description="List the caller's todos. A caller with no stored list gets the default seed items.",
    responses={
        200: {"description": "List retrieved successfully"},
        401: {"model": ErrorOut, "description": "Missing or invalid token"},
        500: {"model": ErrorOut, "description": "Internal server error"},
    },
)
async def list_todos(
    username: str = Depends(get_current_username),
    service: TodoService = Depends(get_todo_service),
) -> List[TodoOut]:
    """
    List todos for the authenticated user.
    """
    todos = await service.list_todos(username)
    return [TodoOut(id=t.id, content=t.content) for t in todos]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    summary="Create Todo",
    description="Create a todo with the next id in the caller's list and return it.",
    responses={
        200: {"description": "Todo created successfully"},
        400: {"model": ErrorOut, "description": "Content missing, not a string, or blank"},
        401: {"model": ErrorOut, "description": "Missing or invalid token"},
    },
)
async def create_todo(
    payload: TodoCreate,
    username: str = Depends(get_current_username),
    service: TodoService = Depends(get_todo_service),
) -> TodoOut:
    """
    Create a new todo.
    """
    todo = await service.create_todo(username, payload.content)
    return TodoOut(id=todo.id, content=todo.content)


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete Todo",
    description="Delete a todo by id.",
    responses={
        204: {"description": "Todo deleted"},
        401: {"model": ErrorOut, "description": "Missing or invalid token"},
        404: {"model": ErrorOut, "description": "Todo not found"},
    },
)
async def delete_todo(
    task_id: str,
    username: str = Depends(get_current_username),
    service: TodoService = Depends(get_todo_service),
) -> Response:
    """
    Delete a todo. Returns 204 on success, 404 if the id is unknown.
    """
    # ids are stored under their canonical decimal form; "02", " 3" or "+3" name no todo
    if not (task_id.isascii() and task_id.isdecimal()) or task_id != str(int(task_id)):
        raise TodoNotFoundError()
    await service.delete_todo(username, int(task_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
