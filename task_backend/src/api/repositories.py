from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from threading import RLock
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import structlog

from .errors import DuplicateEmailError, InvalidStatusError, NotFoundError, ValidationError
from .models import STATUS_PENDING, TASK_STATUSES, Identity, TaskEntity, UserEntity
from .settings import Settings
from .utils import clean_text, new_id, utcnow

logger = structlog.get_logger(__name__)

UPDATABLE_TASK_FIELDS = ("title", "description", "status")


@dataclass(frozen=True)
class TaskQuery:
    """
    Filter for listing tasks. owner_id is mandatory; the other predicates are optional
    and are AND'ed with it.
    """
    owner_id: str
    search: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def build(cls, owner_id: str, search: Optional[str] = None, status: Optional[str] = None) -> "TaskQuery":
        """
        Compose a query from raw list parameters.

        - search is stripped; a blank term means no title predicate
        - status must match one of TASK_STATUSES exactly; anything else is dropped rather than rejected
        """
        return cls(
            owner_id=owner_id,
            search=clean_text(search),
            status=status if status in TASK_STATUSES else None,
        )

    def matches(self, task: TaskEntity) -> bool:
        if task["owner_id"] != self.owner_id:
            return False
        if self.status is not None and task["status"] != self.status:
            return False
        if self.search is not None and self.search.casefold() not in task["title"].casefold():
            return False
        return True


# PUBLIC_INTERFACE
class UserRepository(ABC):
    """Abstract storage contract for user records."""

    @abstractmethod
    def add(self, user: UserEntity) -> UserEntity:
        """Persist a new user. Raise DuplicateEmailError if the email is taken."""

    @abstractmethod
    def get(self, user_id: str) -> Optional[UserEntity]:
        """Return a user by id, or None if not found."""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[UserEntity]:
        """Return a user by normalized email, or None if not found."""


# PUBLIC_INTERFACE
class TaskRepository(ABC):
    """
    Abstract storage contract for task records.

    Every lookup and mutation takes the owner id alongside the task id; there is no
    way to address a task by id alone.
    """

    @abstractmethod
    def insert(self, task: TaskEntity) -> TaskEntity:
        """Persist a new task and return it."""

    @abstractmethod
    def find_one(self, task_id: str, owner_id: str) -> Optional[TaskEntity]:
        """Return the task matching both id and owner, or None."""

    @abstractmethod
    def find(self, query: TaskQuery) -> List[TaskEntity]:
        """Return tasks matching query, newest first."""

    @abstractmethod
    def update_one(self, task_id: str, owner_id: str, changes: Mapping[str, Any]) -> Optional[TaskEntity]:
        """Apply already-validated changes and refresh updated_at. Return None if no match."""

    @abstractmethod
    def delete_one(self, task_id: str, owner_id: str) -> bool:
        """Delete the task matching both id and owner. Return True if a row was removed."""


class InMemoryUserRepository(UserRepository):
    """Thread-safe in-memory user store suitable for testing and default runtime."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, UserEntity] = {}
        self._by_email: Dict[str, str] = {}

    def add(self, user: UserEntity) -> UserEntity:
        with self._lock:
            if user["email"] in self._by_email:
                raise DuplicateEmailError()
            self._items[user["id"]] = user.copy()
            self._by_email[user["email"]] = user["id"]
            return user.copy()

    def get(self, user_id: str) -> Optional[UserEntity]:
        with self._lock:
            item = self._items.get(user_id)
            return None if item is None else item.copy()

    def get_by_email(self, email: str) -> Optional[UserEntity]:
        with self._lock:
            user_id = self._by_email.get(email)
            return None if user_id is None else self._items[user_id].copy()

    def remove(self, user_id: str) -> bool:
        """Drop a user. Only administrative paths and tests call this."""
        with self._lock:
            user = self._items.pop(user_id, None)
            if user is None:
                return False
            self._by_email.pop(user["email"], None)
            return True


class InMemoryTaskRepository(TaskRepository):
    """Thread-safe in-memory task store suitable for testing and default runtime."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, TaskEntity] = {}

    def insert(self, task: TaskEntity) -> TaskEntity:
        with self._lock:
            self._items[task["id"]] = task.copy()
            return task.copy()

    def find_one(self, task_id: str, owner_id: str) -> Optional[TaskEntity]:
        with self._lock:
            item = self._items.get(task_id)
            if item is None or item["owner_id"] != owner_id:
                return None
            return item.copy()

    def find(self, query: TaskQuery) -> List[TaskEntity]:
        with self._lock:
            # Newest insertions first so equal timestamps still come out newest first.
            items: Iterable[TaskEntity] = reversed(list(self._items.values()))
            matched = [t for t in items if query.matches(t)]
            matched.sort(key=lambda t: t["created_at"], reverse=True)
            return [t.copy() for t in matched]

    def update_one(self, task_id: str, owner_id: str, changes: Mapping[str, Any]) -> Optional[TaskEntity]:
        with self._lock:
            existing = self._items.get(task_id)
            if existing is None or existing["owner_id"] != owner_id:
                return None

            updated = existing.copy()
            for key in UPDATABLE_TASK_FIELDS:
                if key in changes:
                    updated[key] = changes[key]  # type: ignore[literal-required]
            updated["updated_at"] = utcnow()

            self._items[task_id] = updated
            return updated.copy()

    def delete_one(self, task_id: str, owner_id: str) -> bool:
        with self._lock:
            existing = self._items.get(task_id)
            if existing is None or existing["owner_id"] != owner_id:
                return False
            del self._items[task_id]
            return True


# PUBLIC_INTERFACE
class ScopedTaskRepository:
    """
    Task operations bound to a single authenticated identity.

    Built per request from the resolved Identity. Every read is filtered by the
    identity's id and every write is stamped with it; the owner never comes from
    caller input. Missing tasks and tasks owned by someone else both raise
    NotFoundError.
    """

    def __init__(self, identity: Identity, repository: TaskRepository) -> None:
        self._identity = identity
        self._repo = repository

    @property
    def owner_id(self) -> str:
        return self._identity.id

    def list(self, search: Optional[str] = None, status: Optional[str] = None) -> List[TaskEntity]:
        return self._repo.find(TaskQuery.build(self.owner_id, search=search, status=status))

    def get(self, task_id: str) -> TaskEntity:
        task = self._repo.find_one(task_id, self.owner_id)
        if task is None:
            raise NotFoundError()
        return task

    def create(
        self,
        title: Optional[str],
        description: Optional[str] = None,
        status: Optional[str] = None,
    ) -> TaskEntity:
        clean_title = _validate_title(title)
        task_status = STATUS_PENDING if status is None else _validate_status(status)
        now = utcnow()
        task: TaskEntity = {
            "id": new_id(),
            "title": clean_title,
            "description": description if description is not None else "",
            "status": task_status,
            "owner_id": self.owner_id,
            "created_at": now,
            "updated_at": now,
        }
        created = self._repo.insert(task)
        logger.info("task.created", task_id=created["id"], owner_id=self.owner_id)
        return created

    def update(self, task_id: str, fields: Mapping[str, Any]) -> TaskEntity:
        """
        Apply the fields present in `fields` (title, description, status).

        All present fields are validated before anything is written, so a rejected
        status or title leaves the stored task untouched.
        """
        self.get(task_id)
        changes = _validate_changes(fields)

        updated = self._repo.update_one(task_id, self.owner_id, changes)
        if updated is None:
            # Deleted between the lookup and the write.
            raise NotFoundError()
        logger.info("task.updated", task_id=task_id, fields=sorted(changes))
        return updated

    def delete(self, task_id: str) -> None:
        if not self._repo.delete_one(task_id, self.owner_id):
            raise NotFoundError()
        logger.info("task.deleted", task_id=task_id, owner_id=self.owner_id)


def _validate_title(title: Optional[str]) -> str:
    clean = clean_text(title)
    if clean is None:
        raise ValidationError("Title is required")
    return clean


def _validate_status(status: Optional[str]) -> str:
    if status not in TASK_STATUSES:
        raise InvalidStatusError()
    return status  # type: ignore[return-value]


def _validate_changes(fields: Mapping[str, Any]) -> Dict[str, Any]:
    changes: Dict[str, Any] = {}
    if "title" in fields:
        changes["title"] = _validate_title(fields["title"])
    if "description" in fields:
        description = fields["description"]
        changes["description"] = description if description is not None else ""
    if "status" in fields:
        changes["status"] = _validate_status(fields["status"])
    return changes


# PUBLIC_INTERFACE
def get_repositories(settings: Settings) -> Tuple[UserRepository, TaskRepository]:
    """
    Build the configured user and task repositories.
    - memory: InMemoryUserRepository / InMemoryTaskRepository
    - sqlite: SQLiteUserRepository / SQLiteTaskRepository sharing one database file
    """
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteTaskRepository, SQLiteUserRepository

        return SQLiteUserRepository(settings.sqlite_db_path), SQLiteTaskRepository(settings.sqlite_db_path)
    return InMemoryUserRepository(), InMemoryTaskRepository()
