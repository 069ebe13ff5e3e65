"""
Composition root: wires repositories, credential store and token services
from a Settings value. One Services instance lives on app.state per app.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .auth import IdentityResolver
from .credentials import CredentialStore
from .repositories import TaskRepository, UserRepository, get_repositories
from .settings import Settings
from .tokens import TokenConfig, TokenIssuer, TokenVerifier


@dataclass(frozen=True)
class Services:
    settings: Settings
    users: UserRepository
    tasks: TaskRepository
    credentials: CredentialStore
    issuer: TokenIssuer
    resolver: IdentityResolver


# PUBLIC_INTERFACE
def build_services(settings: Settings, token_config: Optional[TokenConfig] = None) -> Services:
    """Build every collaborator the routers need from settings."""
    users, tasks = get_repositories(settings)
    config = token_config or TokenConfig.from_settings(settings)
    credentials = CredentialStore(users, bcrypt_rounds=settings.bcrypt_rounds)
    return Services(
        settings=settings,
        users=users,
        tasks=tasks,
        credentials=credentials,
        issuer=TokenIssuer(config),
        resolver=IdentityResolver(TokenVerifier(config), credentials),
    )
