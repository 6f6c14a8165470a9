from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class OAuthServerSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="OSTEND_",
        env_file=".env",
        extra="ignore",
    )

    access_token_lifetime: int | None = 3600
    refresh_token_lifetime: int | None = 1209600
    authorization_code_lifetime: int = 300

    allow_empty_state: bool = False
    always_issue_new_refresh_token: bool = True
    allow_extended_token_attributes: bool = False
    require_client_authentication: dict[str, bool] = Field(default_factory=dict)

    allow_bearer_tokens_in_query_string: bool = False
    add_accepted_scopes_header: bool = True
    add_authorized_scopes_header: bool = True

    @field_validator("access_token_lifetime", "refresh_token_lifetime", "authorization_code_lifetime")
    @classmethod
    def validate_lifetime(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            msg = "token lifetimes must be positive"
            raise ValueError(msg)
        return value
