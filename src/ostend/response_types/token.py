from __future__ import annotations

from typing import TYPE_CHECKING

from ostend.errors import InvalidArgumentError
from ostend.grant_types.implicit import ImplicitGrantType
from ostend.token_types import BearerTokenType
from ostend.utils import append_fragment_params

if TYPE_CHECKING:
    from ostend.grant_types.base import TokenIssuer
    from ostend.models import Client, Token, User
    from ostend.request import Request


class TokenResponseType:
    """Implicit flow; the token travels in the redirect fragment, never the query."""

    def __init__(self, issuer: TokenIssuer) -> None:
        self.issuer = issuer
        self.token: Token | None = None
        self.access_token_lifetime: int | None = None

    async def handle(
        self,
        request: Request,
        client: Client,
        user: User,
        uri: str,  # noqa: ARG002
        scope: str | None,
    ) -> Token:
        grant_type = ImplicitGrantType(self.issuer, user=user, scope=scope)
        self.token = await grant_type.handle(request, client)
        self.access_token_lifetime = client.access_token_lifetime or self.issuer.access_token_lifetime
        return self.token

    def build_redirect_uri(self, redirect_uri: str) -> str:
        if not redirect_uri:
            msg = "Missing parameter: `redirect_uri`"
            raise InvalidArgumentError(msg)
        if self.token is None:
            msg = "Missing parameter: `token`"
            raise InvalidArgumentError(msg)

        value = BearerTokenType(
            self.token.access_token,
            self.access_token_lifetime,
            scope=self.token.scope,
        ).value()
        return append_fragment_params(redirect_uri, **{key: str(item) for key, item in value.items()})

    def set_redirect_uri_param(self, redirect_uri: str, key: str, value: str | None) -> str:
        if not redirect_uri:
            msg = "Missing parameter: `redirect_uri`"
            raise InvalidArgumentError(msg)
        return append_fragment_params(redirect_uri, **{key: value})
