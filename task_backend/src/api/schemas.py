from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Request bodies accept any string (or nothing) for each field. Presence, blankness,
# email format and status membership are checked by the core so that every failure
# is reported through the same error taxonomy.


# PUBLIC_INTERFACE
class RegisterRequest(BaseModel):
    """
    Schema for registering a new user.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "John Doe",
                "email": "john@example.com",
                "password": "password123",
            }
        }
    )

    name: Optional[str] = Field(default=None, description="Display name")
    email: Optional[str] = Field(default=None, description="Email address, used to log in")
    password: Optional[str] = Field(default=None, description="Plaintext password, at least 6 characters")


# PUBLIC_INTERFACE
class LoginRequest(BaseModel):
    """
    Schema for logging in with email and password.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "john@example.com", "password": "password123"}}
    )

    email: Optional[str] = Field(default=None, description="Registered email address")
    password: Optional[str] = Field(default=None, description="Plaintext password")


# PUBLIC_INTERFACE
class UserOut(BaseModel):
    """
    Public projection of a user. Never includes the password digest.
    """

    id: str = Field(..., description="Unique identifier of the user")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Normalized email address")
    created_at: datetime = Field(..., description="Registration timestamp")


class AuthResponse(BaseModel):
    message: str = Field(..., description="Human readable outcome")
    token: str = Field(..., description="Bearer token; send as 'Authorization: Bearer <token>'")
    user: UserOut


class ProfileResponse(BaseModel):
    user: UserOut


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new task. The owner is always the authenticated caller.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Complete project",
                "description": "Finish the task manager API",
                "status": "in-progress",
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Short title; required and non-blank")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    status: Optional[str] = Field(
        default=None, description="One of: pending, in-progress, completed. Defaults to pending"
    )


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for updating an existing task.
    All fields are optional; only fields present in the request body are changed.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"status": "completed"}}
    )

    title: Optional[str] = Field(default=None, description="Short title; non-blank when present")
    description: Optional[str] = Field(default=None, description="Detailed description")
    status: Optional[str] = Field(default=None, description="One of: pending, in-progress, completed")


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "3f1c2a9e8b7d4c6f9a0b1c2d3e4f5a6b",
                "title": "Complete project",
                "description": "",
                "status": "in-progress",
                "owner_id": "9a8b7c6d5e4f3a2b1c0d9e8f7a6b5c4d",
                "created_at": "2025-01-25T10:15:30.123456+00:00",
                "updated_at": "2025-01-26T09:00:00.000001+00:00",
            }
        }
    )

    id: str = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Short title")
    description: str = Field(..., description="Detailed description, empty when not provided")
    status: str = Field(..., description="One of: pending, in-progress, completed")
    owner_id: str = Field(..., description="Identifier of the owning user")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class TaskResponse(BaseModel):
    task: TaskOut


class TaskMutationResponse(BaseModel):
    message: str
    task: TaskOut


class TaskListResponse(BaseModel):
    count: int = Field(..., description="Number of tasks returned")
    tasks: List[TaskOut] = Field(..., description="Matching tasks, newest first")


class MessageResponse(BaseModel):
    message: str
