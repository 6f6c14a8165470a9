from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ostend.errors import (
    InvalidArgumentError,
    InvalidClientError,
    InvalidRequestError,
    OAuthError,
    ServerError,
    UnauthorizedClientError,
    UnsupportedGrantTypeError,
)
from ostend.grant_types import (
    AuthorizationCodeGrantType,
    ClientCredentialsGrantType,
    GrantType,
    PasswordGrantType,
    RefreshTokenGrantType,
    TokenIssuer,
)
from ostend.grant_types.base import require_model
from ostend.protocols import ClientModelProtocol, TokenModelProtocol
from ostend.token_types import BearerTokenType, OAuthErrorResponse
from ostend.utils import seconds_until
from ostend.validators import is_nchar, is_uri, is_vschar

if TYPE_CHECKING:
    from ostend.models import Client, Token
    from ostend.request import Request, Response

logger = logging.getLogger(__name__)

type GrantTypeFactory = Callable[[TokenIssuer], GrantType]

_BASIC_REALM = 'Basic realm="Service"'


@dataclass(frozen=True, slots=True, kw_only=True)
class ClientCredentials:
    client_id: str
    client_secret: str | None = None
    from_header: bool = False


class TokenHandler:
    def __init__(
        self,
        model: object,
        *,
        access_token_lifetime: int | None,
        refresh_token_lifetime: int | None,
        always_issue_new_refresh_token: bool | None = None,
        allow_extended_token_attributes: bool = False,
        require_client_authentication: Mapping[str, bool] | None = None,
        extended_grant_types: Mapping[str, GrantTypeFactory] | None = None,
    ) -> None:
        self.model = require_model(model, ClientModelProtocol, "get_client")
        require_model(model, TokenModelProtocol, "save_token")

        self.access_token_lifetime = access_token_lifetime
        self.refresh_token_lifetime = refresh_token_lifetime
        self.always_issue_new_refresh_token = always_issue_new_refresh_token
        self.allow_extended_token_attributes = allow_extended_token_attributes
        self.require_client_authentication = dict(require_client_authentication or {})
        self.extended_grant_types = dict(extended_grant_types or {})
        for name in self.extended_grant_types:
            if not is_uri(name):
                msg = f"Invalid argument: extended grant type `{name}` must be a URI"
                raise InvalidArgumentError(msg)

    async def handle(self, request: Request, response: Response) -> Token:
        if request.method != "POST":
            msg = "Invalid request: method must be POST"
            raise InvalidRequestError(msg)

        if not request.is_form():
            msg = "Invalid request: content must be application/x-www-form-urlencoded"
            raise InvalidRequestError(msg)

        try:
            client = await self.get_client(request)
            token = await self.handle_grant_type(request, client)
            self.update_success_response(response, token)
        except OAuthError as exc:
            self.update_error_response(response, exc)
            raise
        except Exception as exc:
            logger.warning("Token request failed unexpectedly", exc_info=True)
            error = ServerError.wrap(exc)
            self.update_error_response(response, error)
            raise error from exc
        return token

    async def get_client(self, request: Request) -> Client:
        grant_type = request.body.get("grant_type")
        credentials = self.get_client_credentials(request, grant_type)

        if not is_vschar(credentials.client_id):
            msg = "Invalid parameter: `client_id`"
            raise InvalidRequestError(msg)

        if credentials.client_secret is not None and not is_vschar(credentials.client_secret):
            msg = "Invalid parameter: `client_secret`"
            raise InvalidRequestError(msg)

        client = await self.model.get_client(request, credentials.client_id, credentials.client_secret)
        if not client:
            logger.warning("Client authentication failed for %s", credentials.client_id)
            error = InvalidClientError("Invalid client: client is invalid")
            if credentials.from_header:
                error.headers["WWW-Authenticate"] = _BASIC_REALM
            raise error

        if client.grants is None:
            msg = "Server error: missing client `grants`"
            raise ServerError(msg)

        if not isinstance(client.grants, list):
            msg = "Server error: `grants` must be a list"
            raise ServerError(msg)

        return client

    def get_client_credentials(self, request: Request, grant_type: str | None) -> ClientCredentials:
        authentication_required = self.is_client_authentication_required(grant_type)

        header_credentials = self._parse_basic_authorization(request.get_header("authorization"))
        if header_credentials is not None:
            return header_credentials

        client_id = request.body.get("client_id")
        client_secret = request.body.get("client_secret")
        if not client_id:
            msg = "Missing parameter: `client_id`"
            raise InvalidRequestError(msg)

        if client_secret:
            return ClientCredentials(client_id=str(client_id), client_secret=str(client_secret))

        if not authentication_required:
            return ClientCredentials(client_id=str(client_id))

        msg = "Missing parameter: `client_secret`"
        raise InvalidRequestError(msg)

    def is_client_authentication_required(self, grant_type: str | None) -> bool:
        if grant_type is None:
            return True
        return self.require_client_authentication.get(grant_type, True)

    async def handle_grant_type(self, request: Request, client: Client) -> Token:
        grant_type = request.body.get("grant_type")
        if not grant_type:
            msg = "Missing parameter: `grant_type`"
            raise InvalidRequestError(msg)

        if not is_nchar(grant_type) and not is_uri(grant_type):
            msg = "Invalid parameter: `grant_type`"
            raise InvalidRequestError(msg)

        issuer = TokenIssuer(
            model=self.model,
            access_token_lifetime=self.access_token_lifetime,
            refresh_token_lifetime=self.refresh_token_lifetime,
        )
        handler = self.build_grant_type(grant_type, issuer)

        if grant_type not in client.grants:  # type: ignore[operator]
            msg = "Unauthorized client: `grant_type` is invalid"
            raise UnauthorizedClientError(msg)

        token = await handler.handle(request, client)
        logger.debug("Issued %s token for client %s", grant_type, client.id)
        return token

    def build_grant_type(self, grant_type: str, issuer: TokenIssuer) -> GrantType:
        match grant_type:
            case "authorization_code":
                return AuthorizationCodeGrantType(issuer)
            case "client_credentials":
                return ClientCredentialsGrantType(issuer)
            case "password":
                return PasswordGrantType(issuer)
            case "refresh_token":
                return RefreshTokenGrantType(
                    issuer,
                    always_issue_new_refresh_token=self.always_issue_new_refresh_token,
                )
            case _ if grant_type in self.extended_grant_types:
                return self.extended_grant_types[grant_type](issuer)
            case _:
                msg = "Unsupported grant type: `grant_type` is invalid"
                raise UnsupportedGrantTypeError(msg)

    def get_token_type(self, token: Token) -> BearerTokenType:
        custom_attributes = token.custom_attributes if self.allow_extended_token_attributes else None
        return BearerTokenType(
            token.access_token,
            seconds_until(token.access_token_expires_at),
            token.refresh_token,
            token.scope,
            custom_attributes,
        )

    def update_success_response(self, response: Response, token: Token) -> None:
        response.body = self.get_token_type(token).value()
        response.status_code = 200
        response.set_header("Cache-Control", "no-store")
        response.set_header("Pragma", "no-cache")

    def update_error_response(self, response: Response, error: OAuthError) -> None:
        response.body = OAuthErrorResponse(**error.to_dict()).model_dump(exclude_none=True)
        response.status_code = error.status_code
        for name, value in error.headers.items():
            response.set_header(name, value)

    @staticmethod
    def _parse_basic_authorization(header: str | None) -> ClientCredentials | None:
        if not header or not header.lower().startswith("basic "):
            return None
        try:
            decoded = base64.b64decode(header[6:].strip(), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            msg = "Invalid client: cannot retrieve client credentials"
            raise InvalidClientError(msg, headers={"WWW-Authenticate": _BASIC_REALM}) from exc

        client_id, separator, client_secret = decoded.partition(":")
        if not separator or not client_id:
            msg = "Invalid client: cannot retrieve client credentials"
            raise InvalidClientError(msg, headers={"WWW-Authenticate": _BASIC_REALM})
        return ClientCredentials(client_id=client_id, client_secret=client_secret or None, from_header=True)
