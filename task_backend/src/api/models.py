from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import FrozenSet, TypedDict

STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in-progress"
STATUS_COMPLETED = "completed"

# Any status may move to any other; none is terminal.
TASK_STATUSES: FrozenSet[str] = frozenset({STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED})


# PUBLIC_INTERFACE
class UserEntity(TypedDict):
    """
    Stored user record.

    Fields:
    - id: Opaque unique identifier (uuid4 hex), immutable
    - name: Display name, trimmed and non-empty
    - email: Lowercased, trimmed, unique
    - password_hash: bcrypt digest; never leaves the credential store
    - created_at: UTC creation timestamp
    """

    id: str
    name: str
    email: str
    password_hash: str
    created_at: datetime


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    Stored task record.

    Fields:
    - id: Opaque unique identifier (uuid4 hex)
    - title: Trimmed, non-empty
    - description: Free text, empty string by default
    - status: One of TASK_STATUSES
    - owner_id: Identifier of the owning user, immutable after creation
    - created_at: UTC creation timestamp
    - updated_at: UTC timestamp refreshed on every mutation
    """

    id: str
    title: str
    description: str
    status: str
    owner_id: str
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Identity:
    """The authenticated caller, resolved from a bearer token. Carries no password digest."""

    id: str
    name: str
    email: str
    created_at: datetime

    @classmethod
    def from_user(cls, user: UserEntity) -> "Identity":
        return cls(
            id=user["id"],
            name=user["name"],
            email=user["email"],
            created_at=user["created_at"],
        )
