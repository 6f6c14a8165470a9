from __future__ import annotations

from typing import ClassVar


class OAuthError(Exception):
    code: ClassVar[str] = "server_error"
    status_code: ClassVar[int] = 500
    default_message: ClassVar[str] = ""

    def __init__(self, message: str | None = None, *, headers: dict[str, str] | None = None) -> None:
        self.message = self.default_message if message is None else message
        self.headers: dict[str, str] = dict(headers or {})
        self.redirect_uri: str | None = None
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        payload = {"error": self.code}
        if self.message:
            payload["error_description"] = self.message
        return payload


class InvalidRequestError(OAuthError):
    code = "invalid_request"
    status_code = 400
    default_message = "Invalid request"


class InvalidClientError(OAuthError):
    code = "invalid_client"
    status_code = 401
    default_message = "Invalid client"


class InvalidGrantError(OAuthError):
    code = "invalid_grant"
    status_code = 400
    default_message = "Invalid grant"


class InvalidScopeError(OAuthError):
    code = "invalid_scope"
    status_code = 400
    default_message = "Invalid scope"


class UnauthorizedClientError(OAuthError):
    code = "unauthorized_client"
    status_code = 400
    default_message = "Unauthorized client"


class UnsupportedGrantTypeError(OAuthError):
    code = "unsupported_grant_type"
    status_code = 400
    default_message = "Unsupported grant type"


class UnsupportedResponseTypeError(OAuthError):
    code = "unsupported_response_type"
    status_code = 400
    default_message = "Unsupported response type"


class AccessDeniedError(OAuthError):
    code = "access_denied"
    status_code = 400
    default_message = "Access denied"


class InvalidTokenError(OAuthError):
    code = "invalid_token"
    status_code = 401
    default_message = "Invalid token"


class InsufficientScopeError(OAuthError):
    code = "insufficient_scope"
    status_code = 403
    default_message = "Insufficient scope"


class UnauthorizedRequestError(OAuthError):
    # RFC 6750 3.1: a request without any credentials gets no error details.
    code = "unauthorized_request"
    status_code = 401


class ServerError(OAuthError):
    code = "server_error"
    status_code = 500
    default_message = "Server error"

    @classmethod
    def wrap(cls, exc: BaseException) -> ServerError:
        return cls(str(exc) or cls.default_message)


class InvalidArgumentError(OAuthError):
    """Raised for caller-contract violations such as a misconfigured model."""

    code = "invalid_argument"
    status_code = 500
    default_message = "Invalid argument"
