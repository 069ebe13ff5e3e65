from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..dependencies import get_scoped_tasks
from ..repositories import ScopedTaskRepository
from ..schemas import (
    MessageResponse,
    TaskCreate,
    TaskListResponse,
    TaskMutationResponse,
    TaskOut,
    TaskResponse,
    TaskUpdate,
)
from ..utils import list_envelope

# Every route requires a bearer token: get_scoped_tasks resolves it first.
router = APIRouter(
    prefix="/api/tasks",
    tags=["tasks"],
)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TaskListResponse,
    summary="List Tasks",
    description=(
        "List the caller's tasks, newest first.\n\n"
        "Query parameters:\n"
        "- search: case-insensitive substring of the title\n"
        "- status: one of pending, in-progress, completed; any other value is ignored\n"
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        401: {"description": "Missing or invalid token"},
    },
)
def list_tasks(
    search: Optional[str] = Query(None, description="Search text for the title"),
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status"),
    tasks: ScopedTaskRepository = Depends(get_scoped_tasks),
) -> TaskListResponse:
    """
    List tasks owned by the authenticated user.
    """
    items = tasks.list(search=search, status=status_filter)
    envelope = list_envelope(TaskOut(**it) for it in items)  # type: ignore[arg-type]
    return TaskListResponse(**envelope)


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Get Task",
    description="Get a single task by ID.",
    responses={
        200: {"description": "Task found"},
        404: {"description": "Task not found"},
    },
)
def get_task(task_id: str, tasks: ScopedTaskRepository = Depends(get_scoped_tasks)) -> TaskResponse:
    return TaskResponse(task=TaskOut(**tasks.get(task_id)))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a task owned by the authenticated user.",
    responses={
        201: {"description": "Task created successfully"},
        400: {"description": "Missing title or invalid status"},
    },
)
def create_task(payload: TaskCreate, tasks: ScopedTaskRepository = Depends(get_scoped_tasks)) -> TaskMutationResponse:
    created = tasks.create(payload.title, description=payload.description, status=payload.status)
    return TaskMutationResponse(message="Task created successfully", task=TaskOut(**created))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=TaskMutationResponse,
    summary="Update Task",
    description=(
        "Update the fields present in the request body. An invalid status rejects the "
        "whole update and leaves the task unchanged."
    ),
    responses={
        200: {"description": "Task updated"},
        400: {"description": "Invalid status or blank title"},
        404: {"description": "Task not found"},
    },
)
def update_task(
    task_id: str,
    payload: TaskUpdate,
    tasks: ScopedTaskRepository = Depends(get_scoped_tasks),
) -> TaskMutationResponse:
    """
    Partial update of a task. Fields absent from the body keep their stored value.
    """
    updated = tasks.update(task_id, payload.model_dump(exclude_unset=True))
    return TaskMutationResponse(message="Task updated successfully", task=TaskOut(**updated))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    response_model=MessageResponse,
    summary="Delete Task",
    description="Delete a task by ID.",
    responses={
        200: {"description": "Task deleted"},
        404: {"description": "Task not found"},
    },
)
def delete_task(task_id: str, tasks: ScopedTaskRepository = Depends(get_scoped_tasks)) -> MessageResponse:
    tasks.delete(task_id)
    return MessageResponse(message="Task deleted successfully")
