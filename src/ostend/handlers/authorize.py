"""The ``/authorize`` endpoint.

Request handling is split at the redirect URI trust boundary. Everything in
:meth:`AuthorizeHandler._resolve_client` and :meth:`AuthorizeHandler._resolve_user` runs
before a safe destination is known, so failures there propagate without a redirect.
Once :meth:`AuthorizeHandler._trusted_redirect_uri` has produced the URI, every failure
is rendered as an error redirect to it and then re-raised.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ostend.errors import (
    AccessDeniedError,
    InvalidArgumentError,
    InvalidClientError,
    InvalidRequestError,
    InvalidScopeError,
    OAuthError,
    ServerError,
    UnauthorizedClientError,
)
from ostend.grant_types.base import TokenIssuer, require_model
from ostend.handlers.authenticate import AuthenticateHandler
from ostend.protocols import AuthenticateHandlerProtocol, ClientModelProtocol
from ostend.response_types import CodeResponseType, ResponseType, TokenResponseType, resolve_response_type
from ostend.utils import construct_redirect_uri
from ostend.validators import is_nqschar, is_uri, is_vschar

if TYPE_CHECKING:
    from ostend.models import AuthorizationCode, Client, Token, User
    from ostend.request import Request, Response

logger = logging.getLogger(__name__)


class AuthorizeHandler:
    def __init__(
        self,
        model: object,
        *,
        authenticate_handler: object | None = None,
        allow_empty_state: bool = False,
        authorization_code_lifetime: int = 300,
        access_token_lifetime: int | None = None,
    ) -> None:
        if authenticate_handler is not None and not isinstance(authenticate_handler, AuthenticateHandlerProtocol):
            msg = "Invalid argument: authenticate_handler does not implement `handle()`"
            raise InvalidArgumentError(msg)

        self.model = require_model(model, ClientModelProtocol, "get_client")
        self.authenticate_handler = authenticate_handler or AuthenticateHandler(model)
        self.allow_empty_state = allow_empty_state
        self.authorization_code_lifetime = authorization_code_lifetime
        self.access_token_lifetime = access_token_lifetime

    async def handle(self, request: Request, response: Response) -> AuthorizationCode | Token:
        if request.query.get("allowed") == "false" or request.body.get("allowed") == "false":
            msg = "Access denied: user denied access to application"
            raise AccessDeniedError(msg)

        try:
            client = await self._resolve_client(request)
            user = await self._resolve_user(request, response)
        except OAuthError:
            raise
        except Exception as exc:
            raise ServerError.wrap(exc) from exc

        uri = self._trusted_redirect_uri(request, client)

        state: str | None = None
        response_type: ResponseType | None = None
        try:
            # State first: RFC 6749 4.1.2.1 requires it on error redirects too.
            state = self.get_state(request)
            self.check_grant_permission(request, client)
            scope = await self.validate_scope(request, user, client, self.get_scope(request))
            response_type = self.build_response_type(request)
            artifact = await response_type.handle(request, client, user, uri, scope)
            redirect_uri = response_type.build_redirect_uri(uri)
            self.update_response(response, redirect_uri, response_type, state)
        except OAuthError as exc:
            self._redirect_error(response, uri, response_type, state, exc)
            raise
        except Exception as exc:
            logger.warning("Authorize request for client %s failed unexpectedly", client.id, exc_info=True)
            error = ServerError.wrap(exc)
            self._redirect_error(response, uri, response_type, state, error)
            raise error from exc

        return artifact

    async def _resolve_client(self, request: Request) -> Client:
        client_id = request.get_param("client_id")
        if not client_id:
            msg = "Missing parameter: `client_id`"
            raise InvalidRequestError(msg)

        if not is_vschar(client_id):
            msg = "Invalid parameter: `client_id`"
            raise InvalidRequestError(msg)

        redirect_uri = request.get_param("redirect_uri")
        if redirect_uri and not is_uri(redirect_uri):
            msg = "Invalid request: `redirect_uri` is not a valid URI"
            raise InvalidRequestError(msg)

        client = await self.model.get_client(request, client_id, None)
        if not client:
            msg = "Invalid client: client credentials are invalid"
            raise InvalidClientError(msg)

        if client.grants is None:
            msg = "Invalid client: missing client `grants`"
            raise InvalidClientError(msg)

        if not client.redirect_uris:
            msg = "Invalid client: missing client `redirect_uri`"
            raise InvalidClientError(msg)

        if redirect_uri and redirect_uri not in client.redirect_uris:
            msg = "Invalid client: `redirect_uri` does not match client value"
            raise InvalidClientError(msg)

        return client

    async def _resolve_user(self, request: Request, response: Response) -> User:
        if isinstance(self.authenticate_handler, AuthenticateHandler):
            access_token = await self.authenticate_handler.handle(request, response)
            return access_token.user

        user = await self.authenticate_handler.handle(request, response)  # type: ignore[union-attr]
        if not user:
            msg = "Server error: `handle()` did not return a `user` object"
            raise ServerError(msg)
        return user

    def _trusted_redirect_uri(self, request: Request, client: Client) -> str:
        return request.get_param("redirect_uri") or client.redirect_uris[0]

    def check_grant_permission(self, request: Request, client: Client) -> None:
        # Runs after the redirect URI is trusted, so an implicit request from a
        # code-only client is redirected as `unauthorized_client`.
        requested_grant = "implicit" if request.get_param("response_type") == "token" else "authorization_code"
        if requested_grant not in (client.grants or []):
            msg = "Unauthorized client: `grant_type` is invalid"
            raise UnauthorizedClientError(msg)

    def get_state(self, request: Request) -> str | None:
        state = request.get_param("state")
        if state is None:
            if not self.allow_empty_state:
                msg = "Missing parameter: `state`"
                raise InvalidRequestError(msg)
            return None

        if not is_vschar(state):
            msg = "Invalid parameter: `state`"
            raise InvalidRequestError(msg)
        return state

    def get_scope(self, request: Request) -> str | None:
        scope = request.get_param("scope")
        if scope is not None and not is_nqschar(scope):
            msg = "Invalid parameter: `scope`"
            raise InvalidScopeError(msg)
        return scope

    async def validate_scope(self, request: Request, user: User, client: Client, scope: str | None) -> str | None:
        issuer = TokenIssuer(model=self.model, access_token_lifetime=self.access_token_lifetime)
        return await issuer.validate_scope(request, user, client, scope)

    def build_response_type(self, request: Request) -> ResponseType:
        response_type_class = resolve_response_type(request.get_param("response_type"))
        if response_type_class is CodeResponseType:
            return CodeResponseType(self.model, authorization_code_lifetime=self.authorization_code_lifetime)
        return TokenResponseType(TokenIssuer(model=self.model, access_token_lifetime=self.access_token_lifetime))

    def build_error_redirect_uri(self, redirect_uri: str, response_type: ResponseType | None, error: OAuthError) -> str:
        if response_type is None:
            return construct_redirect_uri(
                redirect_uri,
                error=error.code,
                error_description=error.message or None,
            )

        uri = response_type.set_redirect_uri_param(redirect_uri, "error", error.code)
        if error.message:
            uri = response_type.set_redirect_uri_param(uri, "error_description", error.message)
        return uri

    def update_response(
        self,
        response: Response,
        redirect_uri: str,
        response_type: ResponseType | None,
        state: str | None,
    ) -> None:
        if state and response_type is not None:
            redirect_uri = response_type.set_redirect_uri_param(redirect_uri, "state", state)
        elif state:
            redirect_uri = construct_redirect_uri(redirect_uri, state=state)
        response.redirect(redirect_uri)

    def _redirect_error(
        self,
        response: Response,
        uri: str,
        response_type: ResponseType | None,
        state: str | None,
        error: OAuthError,
    ) -> None:
        redirect_uri = self.build_error_redirect_uri(uri, response_type, error)
        self.update_response(response, redirect_uri, response_type, state)
        error.redirect_uri = response.location
        logger.debug("Authorize request redirected with error %s", error.code)
