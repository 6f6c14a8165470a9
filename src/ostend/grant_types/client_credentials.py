from __future__ import annotations

from typing import TYPE_CHECKING

from ostend.errors import InvalidGrantError
from ostend.grant_types.base import require_model
from ostend.models import Token
from ostend.protocols import ClientCredentialsModelProtocol

if TYPE_CHECKING:
    from ostend.grant_types.base import TokenIssuer
    from ostend.models import Client, User
    from ostend.request import Request


class ClientCredentialsGrantType:
    def __init__(self, issuer: TokenIssuer) -> None:
        self.issuer = issuer
        self.model = require_model(issuer.model, ClientCredentialsModelProtocol, "get_user_from_client")

    async def handle(self, request: Request, client: Client) -> Token:
        scope = self.issuer.get_scope(request)
        user = await self.get_user_from_client(request, client)
        return await self.save_token(request, user, client, scope)

    async def get_user_from_client(self, request: Request, client: Client) -> User:
        user = await self.model.get_user_from_client(request, client)
        if not user:
            msg = "Invalid grant: user credentials are invalid"
            raise InvalidGrantError(msg)
        return user

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
