from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ostend.handlers import AuthenticateHandler, AuthorizeHandler, TokenHandler
from ostend.settings import OAuthServerSettings

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ostend.handlers import GrantTypeFactory
    from ostend.models import AccessToken, AuthorizationCode, Token
    from ostend.request import Request, Response


class OAuth2Server:
    """Entry point binding one persistence model to the three OAuth endpoints.

    Keyword overrides passed to :meth:`authenticate`, :meth:`authorize` and :meth:`token`
    take precedence over the values from :class:`OAuthServerSettings` for that call only.
    """

    def __init__(
        self,
        model: object,
        settings: OAuthServerSettings | None = None,
        *,
        extended_grant_types: Mapping[str, GrantTypeFactory] | None = None,
    ) -> None:
        self.model = model
        self.settings = settings or OAuthServerSettings()
        self.extended_grant_types = dict(extended_grant_types or {})

    async def authenticate(
        self,
        request: Request,
        response: Response,
        *,
        scope: str | None = None,
        **overrides: Any,  # noqa: ANN401
    ) -> AccessToken:
        options = {
            "allow_bearer_tokens_in_query_string": self.settings.allow_bearer_tokens_in_query_string,
            "add_accepted_scopes_header": self.settings.add_accepted_scopes_header,
            "add_authorized_scopes_header": self.settings.add_authorized_scopes_header,
            **overrides,
        }
        handler = AuthenticateHandler(self.model, scope=scope, **options)
        return await handler.handle(request, response)

    async def authorize(
        self,
        request: Request,
        response: Response,
        *,
        authenticate_handler: object | None = None,
        **overrides: Any,  # noqa: ANN401
    ) -> AuthorizationCode | Token:
        options = {
            "allow_empty_state": self.settings.allow_empty_state,
            "authorization_code_lifetime": self.settings.authorization_code_lifetime,
            "access_token_lifetime": self.settings.access_token_lifetime,
            **overrides,
        }
        handler = AuthorizeHandler(self.model, authenticate_handler=authenticate_handler, **options)
        return await handler.handle(request, response)

    async def token(
        self,
        request: Request,
        response: Response,
        **overrides: Any,  # noqa: ANN401
    ) -> Token:
        options = {
            "access_token_lifetime": self.settings.access_token_lifetime,
            "refresh_token_lifetime": self.settings.refresh_token_lifetime,
            "always_issue_new_refresh_token": self.settings.always_issue_new_refresh_token,
            "allow_extended_token_attributes": self.settings.allow_extended_token_attributes,
            "require_client_authentication": self.settings.require_client_authentication,
            "extended_grant_types": self.extended_grant_types,
            **overrides,
        }
        handler = TokenHandler(self.model, **options)
        return await handler.handle(request, response)
