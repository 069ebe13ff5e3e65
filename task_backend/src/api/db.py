from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generator, List, Mapping, Optional

from .errors import DuplicateEmailError
from .models import TaskEntity, UserEntity
from .repositories import UPDATABLE_TASK_FIELDS, TaskQuery, TaskRepository, UserRepository
from .utils import utcnow


@dataclass(frozen=True)
class _UserCols:
    table: str = "users"
    id: str = "id"
    name: str = "name"
    email: str = "email"
    password_hash: str = "password_hash"
    created_at: str = "created_at"


@dataclass(frozen=True)
class _TaskCols:
    table: str = "tasks"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    status: str = "status"
    owner_id: str = "owner_id"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_USERS = _UserCols()
_TASKS = _TaskCols()


def _casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if value is not None else None


class _SQLiteBase:
    """Connection handling shared by the SQLite repositories."""

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        # SQLite's lower() only folds ASCII; title search needs full Unicode case folding.
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        raise NotImplementedError


class SQLiteUserRepository(_SQLiteBase, UserRepository):
    """
    SQLite user store. Email uniqueness is enforced by a UNIQUE constraint so that
    concurrent registrations cannot both succeed.
    """

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_USERS.table} (
                    {_USERS.id} TEXT PRIMARY KEY,
                    {_USERS.name} TEXT NOT NULL,
                    {_USERS.email} TEXT NOT NULL UNIQUE,
                    {_USERS.password_hash} TEXT NOT NULL,
                    {_USERS.created_at} TEXT NOT NULL
                )
                """
            )

    def _row_to_entity(self, row: sqlite3.Row) -> UserEntity:
        return {
            "id": str(row[_USERS.id]),
            "name": str(row[_USERS.name]),
            "email": str(row[_USERS.email]),
            "password_hash": str(row[_USERS.password_hash]),
            "created_at": datetime.fromisoformat(row[_USERS.created_at]),
        }

    def add(self, user: UserEntity) -> UserEntity:
        try:
            with self._conn() as conn:
                conn.execute(
                    f"""
                    INSERT INTO {_USERS.table} ({_USERS.id}, {_USERS.name}, {_USERS.email},
                        {_USERS.password_hash}, {_USERS.created_at})
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (user["id"], user["name"], user["email"], user["password_hash"], user["created_at"].isoformat()),
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateEmailError() from e
        return user.copy()

    def get(self, user_id: str) -> Optional[UserEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_USERS.table} WHERE {_USERS.id} = ?", (user_id,)).fetchone()
            return self._row_to_entity(row) if row else None

    def get_by_email(self, email: str) -> Optional[UserEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_USERS.table} WHERE {_USERS.email} = ?", (email,)).fetchone()
            return self._row_to_entity(row) if row else None


class SQLiteTaskRepository(_SQLiteBase, TaskRepository):
    """
    SQLite task store. Every statement carries the owner predicate next to the id.
    """

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_TASKS.table} (
                    {_TASKS.id} TEXT PRIMARY KEY,
                    {_TASKS.title} TEXT NOT NULL,
                    {_TASKS.description} TEXT NOT NULL DEFAULT '',
                    {_TASKS.status} TEXT NOT NULL DEFAULT 'pending',
                    {_TASKS.owner_id} TEXT NOT NULL,
                    {_TASKS.created_at} TEXT NOT NULL,
                    {_TASKS.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_TASKS.table}_owner_created "
                f"ON {_TASKS.table}({_TASKS.owner_id}, {_TASKS.created_at})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TaskEntity:
        return {
            "id": str(row[_TASKS.id]),
            "title": str(row[_TASKS.title]),
            "description": str(row[_TASKS.description]),
            "status": str(row[_TASKS.status]),
            "owner_id": str(row[_TASKS.owner_id]),
            "created_at": datetime.fromisoformat(row[_TASKS.created_at]),
            "updated_at": datetime.fromisoformat(row[_TASKS.updated_at]),
        }

    def _select_one(self, conn: sqlite3.Connection, task_id: str, owner_id: str) -> Optional[sqlite3.Row]:
        return conn.execute(
            f"SELECT * FROM {_TASKS.table} WHERE {_TASKS.id} = ? AND {_TASKS.owner_id} = ?",
            (task_id, owner_id),
        ).fetchone()

    def insert(self, task: TaskEntity) -> TaskEntity:
        with self._conn() as conn:
            conn.execute(
                f"""
                INSERT INTO {_TASKS.table} ({_TASKS.id}, {_TASKS.title}, {_TASKS.description},
                    {_TASKS.status}, {_TASKS.owner_id}, {_TASKS.created_at}, {_TASKS.updated_at})
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task["id"],
                    task["title"],
                    task["description"],
                    task["status"],
                    task["owner_id"],
                    task["created_at"].isoformat(),
                    task["updated_at"].isoformat(),
                ),
            )
            row = self._select_one(conn, task["id"], task["owner_id"])
            assert row is not None
            return self._row_to_entity(row)

    def find_one(self, task_id: str, owner_id: str) -> Optional[TaskEntity]:
        with self._conn() as conn:
            row = self._select_one(conn, task_id, owner_id)
            return self._row_to_entity(row) if row else None

    def find(self, query: TaskQuery) -> List[TaskEntity]:
        clauses = [f"{_TASKS.owner_id} = ?"]
        params: list = [query.owner_id]

        if query.status is not None:
            clauses.append(f"{_TASKS.status} = ?")
            params.append(query.status)

        if query.search is not None:
            # instr() matches the term literally; LIKE would treat % and _ as wildcards.
            clauses.append(f"instr(casefold({_TASKS.title}), ?) > 0")
            params.append(query.search.casefold())

        with self._conn() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM {_TASKS.table}
                WHERE {' AND '.join(clauses)}
                ORDER BY {_TASKS.created_at} DESC, rowid DESC
                """,
                params,
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def update_one(self, task_id: str, owner_id: str, changes: Mapping[str, Any]) -> Optional[TaskEntity]:
        assignments = [f"{key} = ?" for key in UPDATABLE_TASK_FIELDS if key in changes]
        params: list = [changes[key] for key in UPDATABLE_TASK_FIELDS if key in changes]
        assignments.append(f"{_TASKS.updated_at} = ?")
        params.append(utcnow().isoformat())

        with self._conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE {_TASKS.table}
                SET {', '.join(assignments)}
                WHERE {_TASKS.id} = ? AND {_TASKS.owner_id} = ?
                """,
                [*params, task_id, owner_id],
            )
            if cur.rowcount == 0:
                return None
            row = self._select_one(conn, task_id, owner_id)
            assert row is not None
            return self._row_to_entity(row)

    def delete_one(self, task_id: str, owner_id: str) -> bool:
        with self._conn() as conn:
            cur = conn.execute(
                f"DELETE FROM {_TASKS.table} WHERE {_TASKS.id} = ? AND {_TASKS.owner_id} = ?",
                (task_id, owner_id),
            )
            return cur.rowcount > 0
