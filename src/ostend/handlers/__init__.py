from ostend.handlers.authenticate import AuthenticateHandler
from ostend.handlers.authorize import AuthorizeHandler
from ostend.handlers.token import ClientCredentials, GrantTypeFactory, TokenHandler

__all__ = [
    "AuthenticateHandler",
    "AuthorizeHandler",
    "ClientCredentials",
    "GrantTypeFactory",
    "TokenHandler",
]
