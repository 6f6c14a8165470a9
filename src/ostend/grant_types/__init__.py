from ostend.grant_types.authorization_code import AuthorizationCodeGrantType
from ostend.grant_types.base import GrantType, TokenIssuer
from ostend.grant_types.client_credentials import ClientCredentialsGrantType
from ostend.grant_types.implicit import ImplicitGrantType
from ostend.grant_types.password import PasswordGrantType
from ostend.grant_types.refresh_token import RefreshTokenGrantType

__all__ = [
    "AuthorizationCodeGrantType",
    "ClientCredentialsGrantType",
    "GrantType",
    "ImplicitGrantType",
    "PasswordGrantType",
    "RefreshTokenGrantType",
    "TokenIssuer",
]
