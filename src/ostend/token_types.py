from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from ostend.errors import InvalidArgumentError


class OAuthTokenResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    access_token: str
    token_type: Literal["Bearer"] = "Bearer"  # noqa: S105
    expires_in: int | None = None
    refresh_token: str | None = None
    scope: str | None = None


class BearerTokenType:
    """RFC 6750 bearer token response value."""

    def __init__(
        self,
        access_token: str | None,
        access_token_lifetime: int | None = None,
        refresh_token: str | None = None,
        scope: str | None = None,
        custom_attributes: dict[str, Any] | None = None,
    ) -> None:
        if not access_token:
            msg = "Missing parameter: `access_token`"
            raise InvalidArgumentError(msg)

        self.access_token = access_token
        self.access_token_lifetime = access_token_lifetime
        self.refresh_token = refresh_token
        self.scope = scope
        self.custom_attributes = dict(custom_attributes or {})

    def value(self) -> dict[str, Any]:
        standard = {
            "access_token": self.access_token,
            "expires_in": self.access_token_lifetime,
            "refresh_token": self.refresh_token,
            "scope": self.scope,
        }
        extra = {key: value for key, value in self.custom_attributes.items() if key not in OAuthTokenResponse.model_fields}
        return OAuthTokenResponse(**standard, **extra).model_dump(exclude_none=True)


class OAuthErrorResponse(BaseModel):
    error: str
    error_description: str | None = None
