"""
FastAPI dependencies shared by the routers.

Task routes only ever receive a ScopedTaskRepository, which is built here from
the identity the bearer token resolves to.
"""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Request

from .container import Services
from .credentials import CredentialStore
from .models import Identity
from .repositories import ScopedTaskRepository


# PUBLIC_INTERFACE
def get_services(request: Request) -> Services:
    """Return the Services container the app was built with."""
    return request.app.state.services


def get_credentials(services: Services = Depends(get_services)) -> CredentialStore:
    return services.credentials


# PUBLIC_INTERFACE
def get_current_identity(
    authorization: Optional[str] = Header(default=None),
    services: Services = Depends(get_services),
) -> Identity:
    """
    Enforce bearer authentication.

    Raises:
        MissingTokenError / InvalidTokenError, rendered as 401 by the app's handlers.
    """
    return services.resolver.resolve(authorization)


# PUBLIC_INTERFACE
def get_scoped_tasks(
    identity: Identity = Depends(get_current_identity),
    services: Services = Depends(get_services),
) -> ScopedTaskRepository:
    """Task repository bound to the authenticated caller for the current request."""
    return ScopedTaskRepository(identity, services.tasks)
