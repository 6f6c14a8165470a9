from __future__ import annotations

from typing import TYPE_CHECKING

from ostend.errors import InvalidArgumentError
from ostend.models import Token

if TYPE_CHECKING:
    from ostend.grant_types.base import TokenIssuer
    from ostend.models import Client, User
    from ostend.request import Request


class ImplicitGrantType:
    """Issues an access token straight to an already authenticated user.

    Refresh tokens are never issued for this flow (RFC 6749 section 4.2).
    """

    def __init__(self, issuer: TokenIssuer, *, user: User, scope: str | None) -> None:
        if not user:
            msg = "Missing parameter: `user`"
            raise InvalidArgumentError(msg)

        self.issuer = issuer
        self.user = user
        self.scope = scope

    async def handle(self, request: Request, client: Client) -> Token:
        return await self.save_token(request, self.user, client, self.scope)

    async def save_token(self, request: Request, user: User, client: Client, scope: str | None) -> Token:
        issuer = self.issuer
        validated_scope = await issuer.validate_scope(request, user, client, scope)
        token = Token(
            access_token=await issuer.generate_access_token(request, client, user, validated_scope),
            access_token_expires_at=issuer.access_token_expires_at(client),
            scope=validated_scope,
            client=client,
            user=user,
        )
        return await issuer.save_token(request, token)
