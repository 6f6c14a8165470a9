from __future__ import annotations

from typing import TYPE_CHECKING

from ostend.errors import InvalidGrantError, InvalidRequestError, InvalidScopeError, ServerError
from ostend.grant_types.base import check_expiry, is_expired, require_model
from ostend.models import Token
from ostend.protocols import RefreshTokenModelProtocol
from ostend.validators import is_vschar

if TYPE_CHECKING:
    from ostend.grant_types.base import TokenIssuer
    from ostend.models import Client, RefreshToken, User
    from ostend.request import Request


def _split_scope(scope: str | None) -> set[str]:
    return {item for item in (scope or "").split(" ") if item}


class RefreshTokenGrantType:
    def __init__(self, issuer: TokenIssuer, *, always_issue_new_refresh_token: bool | None = None) -> None:
        self.issuer = issuer
        self.model = require_model(issuer.model, RefreshTokenModelProtocol, "get_refresh_token")
        # Unset means rotate.
        self.always_issue_new_refresh_token = always_issue_new_refresh_token is not False

    async def handle(self, request: Request, client: Client) -> Token:
        token = await self.get_refresh_token(request, client)
        scope = self.get_scope(request, token)
        await self.revoke_token(request, token)
        return await self.save_token(request, token.user, client, scope)

    async def get_refresh_token(self, request: Request, client: Client) -> RefreshToken:
        value = request.body.get("refresh_token")
        if not value:
            msg = "Missing parameter: `refresh_token`"
            raise InvalidRequestError(msg)

        if not is_vschar(str(value)):
            msg = "Invalid parameter: `refresh_token`"
            raise InvalidRequestError(msg)

        token = await self.model.get_refresh_token(request, str(value))
        if not token:
            msg = "Invalid grant: refresh token is invalid"
            raise InvalidGrantError(msg)

        if not token.client:
            msg = "Server error: `get_refresh_token()` did not return a `client` object"
            raise ServerError(msg)

        if not token.user:
            msg = "Server error: `get_refresh_token()` did not return a `user` object"
            raise ServerError(msg)

        if token.client.id != client.id:
            msg = "Invalid grant: refresh token is invalid"
            raise InvalidGrantError(msg)

        if is_expired(check_expiry(token.refresh_token_expires_at, name="refresh_token_expires_at")):
            msg = "Invalid grant: refresh token has expired"
            raise InvalidGrantError(msg)

        return token

    def get_scope(self, request: Request, token: RefreshToken) -> str | None:
        requested = self.issuer.get_scope(request)
        if requested is None:
            return token.scope

        if not _split_scope(requested) <= _split_scope(token.scope):
            msg = "Invalid scope: Unable to add extra scopes"
            raise InvalidScopeError(msg)
        return requested

    async def revoke_token(self, request: Request, token: RefreshToken) -> RefreshToken:
        if not self.always_issue_new_refresh_token:
            return token

        revoked = await self.model.revoke_token(request, token)
        if not revoked:
            msg = "Invalid grant: refresh token is invalid"
            raise InvalidGrantError(msg)
        return token

    async def save_token(self, request: Request, user: User, client: Client, scope: str | None) -> Token:
        issuer = self.issuer
        refresh_token = None
        refresh_token_expires_at = None
        if self.always_issue_new_refresh_token:
            refresh_token = await issuer.generate_refresh_token(request, client, user, scope)
            refresh_token_expires_at = issuer.refresh_token_expires_at(client)

        token = Token(
            access_token=await issuer.generate_access_token(request, client, user, scope),
            access_token_expires_at=issuer.access_token_expires_at(client),
            refresh_token=refresh_token,
            refresh_token_expires_at=refresh_token_expires_at,
            scope=scope,
            client=client,
            user=user,
        )
        return await issuer.save_token(request, token)
