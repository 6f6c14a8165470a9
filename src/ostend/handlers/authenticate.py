from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from ostend.errors import (
    InsufficientScopeError,
    InvalidArgumentError,
    InvalidRequestError,
    InvalidTokenError,
    OAuthError,
    ServerError,
    UnauthorizedRequestError,
)
from ostend.grant_types.base import check_expiry, is_expired, require_model
from ostend.protocols import AccessTokenModelProtocol, VerifyScopeModelProtocol

if TYPE_CHECKING:
    from ostend.models import AccessToken
    from ostend.request import Request, Response

logger = logging.getLogger(__name__)

_BEARER_HEADER = re.compile(r"Bearer\s(\S+)")
_REALM = 'Bearer realm="Service"'


class AuthenticateHandler:
    """Resolves the bearer access token presented with a request (RFC 6750)."""

    def __init__(
        self,
        model: object,
        *,
        scope: str | None = None,
        allow_bearer_tokens_in_query_string: bool = False,
        add_accepted_scopes_header: bool = True,
        add_authorized_scopes_header: bool = True,
    ) -> None:
        self.model = require_model(model, AccessTokenModelProtocol, "get_access_token")
        if scope and not isinstance(model, VerifyScopeModelProtocol):
            msg = "Invalid argument: model does not implement `verify_scope()`"
            raise InvalidArgumentError(msg)

        self.scope = scope
        self.allow_bearer_tokens_in_query_string = allow_bearer_tokens_in_query_string
        self.add_accepted_scopes_header = add_accepted_scopes_header
        self.add_authorized_scopes_header = add_authorized_scopes_header

    async def handle(self, request: Request, response: Response) -> AccessToken:
        try:
            request_token = self.get_token_from_request(request)
            access_token = await self.get_access_token(request, request_token)
            self.validate_access_token(access_token)
            if self.scope:
                await self.verify_scope(request, access_token)
            self.update_response(response, access_token)
        except OAuthError as exc:
            self._set_challenge(response, exc)
            raise
        except Exception as exc:
            raise ServerError.wrap(exc) from exc
        return access_token

    def get_token_from_request(self, request: Request) -> str:
        header_token = request.get_header("authorization")
        query_token = request.query.get("access_token")
        body_token = request.body.get("access_token")

        if sum(1 for token in (header_token, query_token, body_token) if token) > 1:
            msg = "Invalid request: only one authentication method is allowed"
            raise InvalidRequestError(msg)

        if header_token:
            return self.get_token_from_request_header(header_token)
        if query_token:
            return self.get_token_from_request_query(str(query_token))
        if body_token:
            return self.get_token_from_request_body(request, str(body_token))

        raise UnauthorizedRequestError

    def get_token_from_request_header(self, header: str) -> str:
        match = _BEARER_HEADER.match(header)
        if match is None:
            msg = "Invalid request: malformed authorization header"
            raise InvalidRequestError(msg)
        return match.group(1)

    def get_token_from_request_query(self, token: str) -> str:
        if not self.allow_bearer_tokens_in_query_string:
            msg = "Invalid request: do not send bearer tokens in query URLs"
            raise InvalidRequestError(msg)
        return token

    def get_token_from_request_body(self, request: Request, token: str) -> str:
        if request.method == "GET":
            msg = "Invalid request: token may not be passed in the body when using the GET verb"
            raise InvalidRequestError(msg)
        if not request.is_form():
            msg = "Invalid request: content must be application/x-www-form-urlencoded"
            raise InvalidRequestError(msg)
        return token

    async def get_access_token(self, request: Request, token: str) -> AccessToken:
        access_token = await self.model.get_access_token(request, token)
        if not access_token:
            msg = "Invalid token: access token is invalid"
            raise InvalidTokenError(msg)

        if not access_token.user:
            msg = "Server error: `get_access_token()` did not return a `user` object"
            raise ServerError(msg)
        return access_token

    def validate_access_token(self, access_token: AccessToken) -> None:
        if is_expired(check_expiry(access_token.access_token_expires_at, name="access_token_expires_at")):
            msg = "Invalid token: access token has expired"
            raise InvalidTokenError(msg)

    async def verify_scope(self, request: Request, access_token: AccessToken) -> None:
        allowed = await self.model.verify_scope(request, access_token, self.scope)  # type: ignore[attr-defined]
        if not allowed:
            msg = "Insufficient scope: authorized scope is insufficient"
            raise InsufficientScopeError(msg)

    def update_response(self, response: Response, access_token: AccessToken) -> None:
        if self.scope and self.add_accepted_scopes_header:
            response.set_header("X-Accepted-OAuth-Scopes", self.scope)
        if self.scope and self.add_authorized_scopes_header and access_token.scope:
            response.set_header("X-OAuth-Scopes", access_token.scope)

    def _set_challenge(self, response: Response, exc: OAuthError) -> None:
        if isinstance(exc, UnauthorizedRequestError):
            challenge = _REALM
        elif isinstance(exc, InvalidRequestError | InvalidTokenError | InsufficientScopeError):
            challenge = f'{_REALM},error="{exc.code}"'
        else:
            return
        logger.debug("Bearer authentication failed: %s", exc.code)
        response.set_header("WWW-Authenticate", challenge)
        exc.headers["WWW-Authenticate"] = challenge
