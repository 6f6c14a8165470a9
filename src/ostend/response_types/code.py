from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ostend.errors import InvalidArgumentError, ServerError
from ostend.grant_types.base import require_model
from ostend.models import AuthorizationCode
from ostend.protocols import GenerateAuthorizationCodeHookProtocol, SaveAuthorizationCodeModelProtocol
from ostend.utils import construct_redirect_uri, expires_at, generate_random_token

if TYPE_CHECKING:
    from ostend.models import Client, User
    from ostend.request import Request

logger = logging.getLogger(__name__)


class CodeResponseType:
    def __init__(self, model: object, *, authorization_code_lifetime: int) -> None:
        if not authorization_code_lifetime:
            msg = "Missing parameter: `authorization_code_lifetime`"
            raise InvalidArgumentError(msg)

        self.model = require_model(model, SaveAuthorizationCodeModelProtocol, "save_authorization_code")
        self.authorization_code_lifetime = authorization_code_lifetime
        self.code: str | None = None

    async def handle(
        self,
        request: Request,
        client: Client,
        user: User,
        uri: str,
        scope: str | None,
    ) -> AuthorizationCode:
        code = AuthorizationCode(
            authorization_code=await self.generate_authorization_code(request, client, user, scope),
            expires_at=expires_at(client.authorization_code_lifetime or self.authorization_code_lifetime),
            redirect_uri=uri,
            scope=scope,
            client=client,
            user=user,
        )
        saved = await self.model.save_authorization_code(request, code, client, user)
        if not saved:
            msg = "Server error: `save_authorization_code()` did not return a code"
            raise ServerError(msg)

        logger.debug("Issued authorization code for client %s", client.id)
        self.code = saved.authorization_code
        return saved

    async def generate_authorization_code(
        self,
        request: Request,
        client: Client,
        user: User,
        scope: str | None,
    ) -> str:
        if isinstance(self.model, GenerateAuthorizationCodeHookProtocol):
            code = await self.model.generate_authorization_code(request, client, user, scope)
            if code:
                return code
        return generate_random_token()

    def build_redirect_uri(self, redirect_uri: str) -> str:
        if not redirect_uri:
            msg = "Missing parameter: `redirect_uri`"
            raise InvalidArgumentError(msg)
        return self.set_redirect_uri_param(redirect_uri, "code", self.code)

    def set_redirect_uri_param(self, redirect_uri: str, key: str, value: str | None) -> str:
        if not redirect_uri:
            msg = "Missing parameter: `redirect_uri`"
            raise InvalidArgumentError(msg)
        return construct_redirect_uri(redirect_uri, **{key: value})
