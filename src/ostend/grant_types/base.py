from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

from ostend.errors import InvalidArgumentError, InvalidScopeError, ServerError
from ostend.protocols import (
    GenerateAccessTokenHookProtocol,
    GenerateRefreshTokenHookProtocol,
    TokenModelProtocol,
    ValidateScopeHookProtocol,
)
from ostend.utils import as_utc, expires_at, generate_random_token, utcnow
from ostend.validators import is_nqschar

if TYPE_CHECKING:
    from ostend.models import Client, Token, User
    from ostend.request import Request


class GrantType(Protocol):
    async def handle(self, request: Request, client: Client) -> Token: ...


@dataclass(frozen=True, slots=True, kw_only=True)
class TokenIssuer:
    """Scope validation, token generation and expiry math shared by every grant."""

    model: object
    access_token_lifetime: int | None = None
    refresh_token_lifetime: int | None = None

    def get_scope(self, request: Request) -> str | None:
        scope = request.body.get("scope") or None
        if scope is not None and not is_nqschar(scope):
            msg = "Invalid parameter: `scope`"
            raise InvalidScopeError(msg)
        return scope

    async def validate_scope(self, request: Request, user: User, client: Client, scope: str | None) -> str | None:
        if not isinstance(self.model, ValidateScopeHookProtocol):
            return scope

        validated_scope = await self.model.validate_scope(request, user, client, scope)
        if not validated_scope:
            msg = "Invalid scope: Requested scope is invalid"
            raise InvalidScopeError(msg)
        return validated_scope

    async def generate_access_token(self, request: Request, client: Client, user: User, scope: str | None) -> str:
        if isinstance(self.model, GenerateAccessTokenHookProtocol):
            access_token = await self.model.generate_access_token(request, client, user, scope)
            if access_token:
                return access_token
        return generate_random_token()

    async def generate_refresh_token(self, request: Request, client: Client, user: User, scope: str | None) -> str:
        if isinstance(self.model, GenerateRefreshTokenHookProtocol):
            refresh_token = await self.model.generate_refresh_token(request, client, user, scope)
            if refresh_token:
                return refresh_token
        return generate_random_token()

    def access_token_expires_at(self, client: Client) -> datetime | None:
        return expires_at(client.access_token_lifetime or self.access_token_lifetime)

    def refresh_token_expires_at(self, client: Client) -> datetime | None:
        return expires_at(client.refresh_token_lifetime or self.refresh_token_lifetime)

    async def save_token(self, request: Request, token: Token) -> Token:
        model = require_model(self.model, TokenModelProtocol, "save_token")
        saved = await model.save_token(request, token, token.client, token.user)
        if not saved:
            msg = "Server error: `save_token()` did not return a token"
            raise ServerError(msg)
        return saved


def require_model[T](model: object, protocol: type[T], method: str) -> T:
    if not isinstance(model, protocol):
        msg = f"Invalid argument: model does not implement `{method}()`"
        raise InvalidArgumentError(msg)
    return model


def check_expiry(value: object, *, name: str) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, datetime):
        msg = f"Server error: `{name}` must be a datetime instance"
        raise ServerError(msg)
    return as_utc(value)


def is_expired(value: datetime | None) -> bool:
    return value is not None and as_utc(value) < utcnow()
