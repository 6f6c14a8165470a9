from ostend.errors import (
    AccessDeniedError,
    InsufficientScopeError,
    InvalidArgumentError,
    InvalidClientError,
    InvalidGrantError,
    InvalidRequestError,
    InvalidScopeError,
    InvalidTokenError,
    OAuthError,
    ServerError,
    UnauthorizedClientError,
    UnauthorizedRequestError,
    UnsupportedGrantTypeError,
    UnsupportedResponseTypeError,
)
from ostend.handlers import AuthenticateHandler, AuthorizeHandler, TokenHandler
from ostend.memory import InMemoryModel, MemoryUser
from ostend.models import AccessToken, AuthorizationCode, Client, RefreshToken, Token
from ostend.request import Request, Response
from ostend.server import OAuth2Server
from ostend.settings import OAuthServerSettings
from ostend.token_types import BearerTokenType, OAuthErrorResponse, OAuthTokenResponse

__all__ = [
    "AccessDeniedError",
    "AccessToken",
    "AuthenticateHandler",
    "AuthorizationCode",
    "AuthorizeHandler",
    "BearerTokenType",
    "Client",
    "InMemoryModel",
    "InsufficientScopeError",
    "InvalidArgumentError",
    "InvalidClientError",
    "InvalidGrantError",
    "InvalidRequestError",
    "InvalidScopeError",
    "InvalidTokenError",
    "MemoryUser",
    "OAuth2Server",
    "OAuthError",
    "OAuthErrorResponse",
    "OAuthServerSettings",
    "OAuthTokenResponse",
    "RefreshToken",
    "Request",
    "Response",
    "ServerError",
    "Token",
    "TokenHandler",
    "UnauthorizedClientError",
    "UnauthorizedRequestError",
    "UnsupportedGrantTypeError",
    "UnsupportedResponseTypeError",
]
