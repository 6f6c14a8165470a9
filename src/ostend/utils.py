from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta
from urllib.parse import quote, unquote_plus, urlencode, urlparse, urlunparse


def utcnow() -> datetime:
    return datetime.now(UTC)


def expires_at(lifetime: int | None, *, now: datetime | None = None) -> datetime | None:
    if lifetime is None:
        return None
    return (now or utcnow()) + timedelta(seconds=lifetime)


def as_utc(moment: datetime) -> datetime:
    # Naive datetimes from storage are taken to be UTC.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def seconds_until(moment: datetime | None, *, now: datetime | None = None) -> int | None:
    if moment is None:
        return None
    moment = as_utc(moment)
    return max(int((moment - (now or utcnow())).total_seconds()), 0)


def generate_random_token() -> str:
    return secrets.token_hex(32)


def construct_redirect_uri(redirect_uri_base: str, **params: str | None) -> str:
    added = {key: value for key, value in params.items() if value is not None}
    if not added:
        return redirect_uri_base

    parsed_uri = urlparse(redirect_uri_base)
    # Existing pairs keep their original encoding unless a new pair replaces them.
    kept = [pair for pair in parsed_uri.query.split("&") if pair and unquote_plus(pair.split("=", 1)[0]) not in added]
    query = "&".join([*kept, urlencode(added)])
    return urlunparse(parsed_uri._replace(query=query))


def append_fragment_params(redirect_uri_base: str, **params: str | None) -> str:
    parsed_uri = urlparse(redirect_uri_base)
    encoded = urlencode([(key, value) for key, value in params.items() if value is not None], quote_via=quote)
    if not encoded:
        return redirect_uri_base
    fragment = f"{parsed_uri.fragment}&{encoded}" if parsed_uri.fragment else encoded
    return urlunparse(parsed_uri._replace(fragment=fragment))
