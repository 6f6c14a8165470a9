"""Persistence collaborator contracts.

Capabilities are detected with ``isinstance`` checks against these runtime protocols, so a
model only implements what the configured flows need. The current request is always
passed as the first argument; models must not keep it between calls.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ostend.models import AccessToken, AuthorizationCode, Client, RefreshToken, Token, User
    from ostend.request import Request


@runtime_checkable
class ClientModelProtocol(Protocol):
    async def get_client(
        self,
        request: Request,
        client_id: str,
        client_secret: str | None,
    ) -> Client | None: ...


@runtime_checkable
class TokenModelProtocol(Protocol):
    async def save_token(
        self,
        request: Request,
        token: Token,
        client: Client,
        user: User,
    ) -> Token | None: ...


@runtime_checkable
class AuthorizationCodeModelProtocol(Protocol):
    async def get_authorization_code(
        self,
        request: Request,
        authorization_code: str,
    ) -> AuthorizationCode | None: ...

    async def revoke_authorization_code(
        self,
        request: Request,
        code: AuthorizationCode,
    ) -> bool: ...


@runtime_checkable
class SaveAuthorizationCodeModelProtocol(Protocol):
    async def save_authorization_code(
        self,
        request: Request,
        code: AuthorizationCode,
        client: Client,
        user: User,
    ) -> AuthorizationCode | None: ...


@runtime_checkable
class RefreshTokenModelProtocol(Protocol):
    async def get_refresh_token(
        self,
        request: Request,
        refresh_token: str,
    ) -> RefreshToken | None: ...

    async def revoke_token(
        self,
        request: Request,
        token: RefreshToken,
    ) -> bool: ...


@runtime_checkable
class AccessTokenModelProtocol(Protocol):
    async def get_access_token(
        self,
        request: Request,
        access_token: str,
    ) -> AccessToken | None: ...


@runtime_checkable
class VerifyScopeModelProtocol(Protocol):
    async def verify_scope(
        self,
        request: Request,
        token: AccessToken,
        scope: str,
    ) -> bool: ...


@runtime_checkable
class PasswordModelProtocol(Protocol):
    async def get_user(
        self,
        request: Request,
        username: str,
        password: str,
    ) -> User | None: ...


@runtime_checkable
class ClientCredentialsModelProtocol(Protocol):
    async def get_user_from_client(
        self,
        request: Request,
        client: Client,
    ) -> User | None: ...


# Optional hooks.


@runtime_checkable
class ValidateScopeHookProtocol(Protocol):
    async def validate_scope(
        self,
        request: Request,
        user: User,
        client: Client,
        scope: str | None,
    ) -> str | None: ...


@runtime_checkable
class GenerateAccessTokenHookProtocol(Protocol):
    async def generate_access_token(
        self,
        request: Request,
        client: Client,
        user: User,
        scope: str | None,
    ) -> str | None: ...


@runtime_checkable
class GenerateRefreshTokenHookProtocol(Protocol):
    async def generate_refresh_token(
        self,
        request: Request,
        client: Client,
        user: User,
        scope: str | None,
    ) -> str | None: ...


@runtime_checkable
class GenerateAuthorizationCodeHookProtocol(Protocol):
    async def generate_authorization_code(
        self,
        request: Request,
        client: Client,
        user: User,
        scope: str | None,
    ) -> str | None: ...


@runtime_checkable
class AuthenticateHandlerProtocol(Protocol):
    async def handle(self, request: Request, response: object) -> object: ...
