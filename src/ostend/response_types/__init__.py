from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from ostend.errors import InvalidRequestError, UnsupportedResponseTypeError
from ostend.response_types.code import CodeResponseType
from ostend.response_types.token import TokenResponseType

if TYPE_CHECKING:
    from ostend.models import Client, User
    from ostend.request import Request


class ResponseType(Protocol):
    async def handle(
        self,
        request: Request,
        client: Client,
        user: User,
        uri: str,
        scope: str | None,
    ) -> object: ...

    def build_redirect_uri(self, redirect_uri: str) -> str: ...

    def set_redirect_uri_param(self, redirect_uri: str, key: str, value: str | None) -> str: ...


def resolve_response_type(response_type: str | None) -> type[CodeResponseType] | type[TokenResponseType]:
    match response_type:
        case None:
            msg = "Missing parameter: `response_type`"
            raise InvalidRequestError(msg)
        case "code":
            return CodeResponseType
        case "token":
            return TokenResponseType
        case _:
            msg = "Unsupported response type: `response_type` is not supported"
            raise UnsupportedResponseTypeError(msg)


__all__ = [
    "CodeResponseType",
    "ResponseType",
    "TokenResponseType",
    "resolve_response_type",
]
