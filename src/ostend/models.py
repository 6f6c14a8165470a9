from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003
from typing import Any

type User = Any


@dataclass(frozen=True, slots=True, kw_only=True)
class Client:
    id: str
    grants: list[str] | None
    redirect_uris: list[str] = field(default_factory=list)
    access_token_lifetime: int | None = None
    refresh_token_lifetime: int | None = None
    authorization_code_lifetime: int | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class AuthorizationCode:
    authorization_code: str
    expires_at: datetime
    redirect_uri: str | None
    scope: str | None
    client: Client
    user: User


@dataclass(frozen=True, slots=True, kw_only=True)
class AccessToken:
    access_token: str
    access_token_expires_at: datetime | None
    scope: str | None
    client: Client
    user: User


@dataclass(frozen=True, slots=True, kw_only=True)
class RefreshToken:
    refresh_token: str
    refresh_token_expires_at: datetime | None
    scope: str | None
    client: Client
    user: User


@dataclass(frozen=True, slots=True, kw_only=True)
class Token:
    access_token: str
    access_token_expires_at: datetime | None
    scope: str | None
    client: Client
    user: User
    refresh_token: str | None = None
    refresh_token_expires_at: datetime | None = None
    authorization_code: str | None = None
    custom_attributes: dict[str, Any] = field(default_factory=dict)
