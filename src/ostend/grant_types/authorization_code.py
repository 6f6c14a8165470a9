from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ostend.errors import InvalidGrantError, InvalidRequestError, ServerError
from ostend.grant_types.base import check_expiry, is_expired, require_model
from ostend.models import Token
from ostend.protocols import AuthorizationCodeModelProtocol
from ostend.validators import is_uri, is_vschar

if TYPE_CHECKING:
    from ostend.grant_types.base import TokenIssuer
    from ostend.models import AuthorizationCode, Client, User
    from ostend.request import Request

logger = logging.getLogger(__name__)


class AuthorizationCodeGrantType:
    def __init__(self, issuer: TokenIssuer, *, issue_refresh_token: bool = True) -> None:
        self.issuer = issuer
        self.model = require_model(issuer.model, AuthorizationCodeModelProtocol, "get_authorization_code")
        self.issue_refresh_token = issue_refresh_token

    async def handle(self, request: Request, client: Client) -> Token:
        code = await self.get_authorization_code(request, client)
        self.validate_redirect_uri(request, code)
        await self.revoke_authorization_code(request, code)
        return await self.save_token(request, code.user, client, code.authorization_code, code.scope)

    async def get_authorization_code(self, request: Request, client: Client) -> AuthorizationCode:
        value = request.body.get("code")
        if not value:
            msg = "Missing parameter: `code`"
            raise InvalidRequestError(msg)

        if not is_vschar(str(value)):
            msg = "Invalid parameter: `code`"
            raise InvalidRequestError(msg)

        code = await self.model.get_authorization_code(request, str(value))
        if not code:
            msg = "Invalid grant: authorization code is invalid"
            raise InvalidGrantError(msg)

        if not code.client:
            msg = "Server error: `get_authorization_code()` did not return a `client` object"
            raise ServerError(msg)

        if not code.user:
            msg = "Server error: `get_authorization_code()` did not return a `user` object"
            raise ServerError(msg)

        if code.client.id != client.id:
            msg = "Invalid grant: authorization code is invalid"
            raise InvalidGrantError(msg)

        expires_at = check_expiry(code.expires_at, name="expires_at")
        if expires_at is None:
            msg = "Server error: `expires_at` must be a datetime instance"
            raise ServerError(msg)

        if is_expired(expires_at):
            msg = "Invalid grant: authorization code has expired"
            raise InvalidGrantError(msg)

        if code.redirect_uri and not is_uri(code.redirect_uri):
            msg = "Invalid grant: `redirect_uri` is not a valid URI"
            raise InvalidGrantError(msg)

        return code

    def validate_redirect_uri(self, request: Request, code: AuthorizationCode) -> None:
        if not code.redirect_uri:
            return

        redirect_uri = request.get_param("redirect_uri")
        if not redirect_uri or not is_uri(redirect_uri):
            msg = "Invalid request: `redirect_uri` is not a valid URI"
            raise InvalidRequestError(msg)

        if redirect_uri != code.redirect_uri:
            msg = "Invalid request: `redirect_uri` is invalid"
            raise InvalidRequestError(msg)

    async def revoke_authorization_code(self, request: Request, code: AuthorizationCode) -> AuthorizationCode:
        # A falsy result means another exchange already consumed the code.
        revoked = await self.model.revoke_authorization_code(request, code)
        if not revoked:
            logger.warning("Authorization code reuse rejected for client %s", code.client.id)
            msg = "Invalid grant: authorization code is invalid"
            raise InvalidGrantError(msg)
        return code

    async def save_token(
        self,
        request: Request,
        user: User,
        client: Client,
        authorization_code: str,
        scope: str | None,
    ) -> Token:
        issuer = self.issuer
        validated_scope = await issuer.validate_scope(request, user, client, scope)
        access_token = await issuer.generate_access_token(request, client, user, validated_scope)
        refresh_token = None
        refresh_token_expires_at = None
        if self.issue_refresh_token:
            refresh_token = await issuer.generate_refresh_token(request, client, user, validated_scope)
            refresh_token_expires_at = issuer.refresh_token_expires_at(client)

        token = Token(
            access_token=access_token,
            access_token_expires_at=issuer.access_token_expires_at(client),
            refresh_token=refresh_token,
            refresh_token_expires_at=refresh_token_expires_at,
            authorization_code=authorization_code,
            scope=validated_scope,
            client=client,
            user=user,
        )
        return await issuer.save_token(request, token)
