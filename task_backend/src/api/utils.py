from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def normalize_email(value: str) -> str:
    return value.strip().lower()


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value))


def clean_text(value: Optional[str]) -> Optional[str]:
    """Strip surrounding whitespace, mapping None and blank strings to None."""
    if value is None:
        return None
    s = value.strip()
    return s or None


# PUBLIC_INTERFACE
def list_envelope(tasks: Iterable[Any]) -> Dict[str, Any]:
    """
    Build the standard envelope for task list responses.

    Args:
        tasks: The tasks matching the query.

    Returns:
        Dict with keys: count, tasks.
    """
    materialized: List[Any] = list(tasks) if not isinstance(tasks, list) else tasks
    return {"count": len(materialized), "tasks": materialized}
