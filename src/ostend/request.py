from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _lower_keys(headers: dict[str, str]) -> dict[str, str]:
    return {key.lower(): value for key, value in headers.items()}


@dataclass(slots=True, kw_only=True)
class Request:
    method: str
    query: dict[str, Any] = field(default_factory=dict)
    body: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.headers = _lower_keys(self.headers)

    def get_header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    def get_param(self, name: str) -> str | None:
        # Empty values count as absent, body wins over query.
        value = self.body.get(name) or self.query.get(name)
        if value is None or value == "":
            return None
        return str(value)

    def is_form(self) -> bool:
        content_type = self.get_header("content-type") or ""
        return content_type.split(";", 1)[0].strip().lower() == _FORM_CONTENT_TYPE


@dataclass(slots=True, kw_only=True)
class Response:
    status_code: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.headers = _lower_keys(self.headers)

    def get_header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    def set_header(self, name: str, value: str) -> None:
        self.headers[name.lower()] = value

    def redirect(self, url: str) -> None:
        self.set_header("location", url)
        self.status_code = 302

    @property
    def location(self) -> str | None:
        return self.get_header("location")
