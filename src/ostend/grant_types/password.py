from __future__ import annotations

from typing import TYPE_CHECKING

from ostend.errors import InvalidGrantError, InvalidRequestError
from ostend.grant_types.base import require_model
from ostend.models import Token
from ostend.protocols import PasswordModelProtocol
from ostend.validators import is_uchar

if TYPE_CHECKING:
    from ostend.grant_types.base import TokenIssuer
    from ostend.models import Client, User
    from ostend.request import Request


class PasswordGrantType:
    def __init__(self, issuer: TokenIssuer, *, issue_refresh_token: bool = True) -> None:
        self.issuer = issuer
        self.model = require_model(issuer.model, PasswordModelProtocol, "get_user")
        self.issue_refresh_token = issue_refresh_token

    async def handle(self, request: Request, client: Client) -> Token:
        scope = self.issuer.get_scope(request)
        user = await self.get_user(request)
        return await self.save_token(request, user, client, scope)

    async def get_user(self, request: Request) -> User:
        username = request.body.get("username")
        password = request.body.get("password")
        if not username:
            msg = "Missing parameter: `username`"
            raise InvalidRequestError(msg)

        if not password:
            msg = "Missing parameter: `password`"
            raise InvalidRequestError(msg)

        if not is_uchar(str(username)):
            msg = "Invalid parameter: `username`"
            raise InvalidRequestError(msg)

        if not is_uchar(str(password)):
            msg = "Invalid parameter: `password`"
            raise InvalidRequestError(msg)

        user = await self.model.get_user(request, str(username), str(password))
        if not user:
            msg = "Invalid grant: user credentials are invalid"
            raise InvalidGrantError(msg)
        return user

    async def save_token(self, request: Request, user: User, client: Client, scope: str | None) -> Token:
        issuer = self.issuer
        validated_scope = await issuer.validate_scope(request, user, client, scope)
        refresh_token = None
        refresh_token_expires_at = None
        if self.issue_refresh_token:
            refresh_token = await issuer.generate_refresh_token(request, client, user, validated_scope)
            refresh_token_expires_at = issuer.refresh_token_expires_at(client)

        token = Token(
            access_token=await issuer.generate_access_token(request, client, user, validated_scope),
            access_token_expires_at=issuer.access_token_expires_at(client),
            refresh_token=refresh_token,
            refresh_token_expires_at=refresh_token_expires_at,
            scope=validated_scope,
            client=client,
            user=user,
        )
        return await issuer.save_token(request, token)
