from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from ostend.errors import InvalidArgumentError, InvalidGrantError, InvalidRequestError, InvalidScopeError, ServerError
from ostend.grant_types import (
    AuthorizationCodeGrantType,
    ClientCredentialsGrantType,
    ImplicitGrantType,
    PasswordGrantType,
    TokenIssuer,
)
from ostend.memory import InMemoryModel, MemoryUser
from ostend.models import AuthorizationCode, Client
from ostend.request import Request
from ostend.utils import utcnow

REDIRECT_URI = "http://testserver/callback"


def _token_request(**body: str) -> Request:
    return Request(
        method="POST",
        body=body,
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )


async def _store_code(
    model: InMemoryModel,
    oauth_client: Client,
    user: MemoryUser,
    *,
    value: str = "code-123",
    expires_in: timedelta = timedelta(minutes=5),
    redirect_uri: str | None = REDIRECT_URI,
) -> AuthorizationCode:
    code = AuthorizationCode(
        authorization_code=value,
        expires_at=utcnow() + expires_in,
        redirect_uri=redirect_uri,
        scope="read",
        client=oauth_client,
        user=user,
    )
    return await model.save_authorization_code(_token_request(), code, oauth_client, user)


class RevokeRejectingModel(InMemoryModel):
    async def revoke_authorization_code(self, _request: Request, _code: AuthorizationCode) -> bool:
        return False


class ScopeRejectingModel(InMemoryModel):
    async def validate_scope(self, _request, _user, _client, _scope) -> str | None:  # noqa: ANN001
        return None


class PrefixedTokenModel(InMemoryModel):
    async def generate_access_token(self, _request, _client, _user, scope) -> str:  # noqa: ANN001
        return f"at-{scope}"

    async def generate_refresh_token(self, _request, _client, _user, scope) -> str:  # noqa: ANN001
        return f"rt-{scope}"


class ClientOnlyModel:
    async def get_client(self, _request: Request, _client_id: str, _client_secret: str | None) -> Client | None:
        return None


@pytest.mark.asyncio
async def test_authorization_code_grant_issues_token(
    model: InMemoryModel,
    oauth_client: Client,
    user: MemoryUser,
) -> None:
    await _store_code(model, oauth_client, user)
    grant_type = AuthorizationCodeGrantType(
        TokenIssuer(model=model, access_token_lifetime=3600, refresh_token_lifetime=7200),
    )

    token = await grant_type.handle(_token_request(code="code-123", redirect_uri=REDIRECT_URI), oauth_client)

    assert token.access_token
    assert token.refresh_token
    assert token.authorization_code == "code-123"
    assert token.scope == "read"
    assert token.user is user
    assert token.access_token_expires_at is not None
    assert token.refresh_token_expires_at is not None
    assert token.refresh_token_expires_at > token.access_token_expires_at


@pytest.mark.asyncio
async def test_authorization_code_is_single_use(
    model: InMemoryModel,
    oauth_client: Client,
    user: MemoryUser,
) -> None:
    await _store_code(model, oauth_client, user)
    grant_type = AuthorizationCodeGrantType(TokenIssuer(model=model, access_token_lifetime=3600))
    request = _token_request(code="code-123", redirect_uri=REDIRECT_URI)

    await grant_type.handle(request, oauth_client)
    with pytest.raises(InvalidGrantError) as exc:
        await grant_type.handle(request, oauth_client)

    assert exc.value.message == "Invalid grant: authorization code is invalid"


@pytest.mark.asyncio
async def test_authorization_code_revoked_once_per_exchange(
    model: InMemoryModel,
    oauth_client: Client,
    user: MemoryUser,
) -> None:
    await _store_code(model, oauth_client, user)
    model.revoke_authorization_code = AsyncMock(wraps=model.revoke_authorization_code)
    grant_type = AuthorizationCodeGrantType(TokenIssuer(model=model, access_token_lifetime=3600))

    await grant_type.handle(_token_request(code="code-123", redirect_uri=REDIRECT_URI), oauth_client)

    model.revoke_authorization_code.assert_awaited_once()
    assert await model.get_authorization_code(_token_request(), "code-123") is None


@pytest.mark.asyncio
async def test_authorization_code_concurrent_redemption(
    model: InMemoryModel,
    oauth_client: Client,
    user: MemoryUser,
) -> None:
    await _store_code(model, oauth_client, user)
    grant_type = AuthorizationCodeGrantType(TokenIssuer(model=model, access_token_lifetime=3600))
    request = _token_request(code="code-123", redirect_uri=REDIRECT_URI)

    results = await asyncio.gather(
        grant_type.handle(request, oauth_client),
        grant_type.handle(request, oauth_client),
        return_exceptions=True,
    )

    errors = [result for result in results if isinstance(result, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], InvalidGrantError)


@pytest.mark.asyncio
async def test_authorization_code_rejects_failed_revocation(oauth_client: Client, user: MemoryUser) -> None:
    model = RevokeRejectingModel()
    await _store_code(model, oauth_client, user)
    grant_type = AuthorizationCodeGrantType(TokenIssuer(model=model, access_token_lifetime=3600))

    with pytest.raises(InvalidGrantError):
        await grant_type.handle(_token_request(code="code-123", redirect_uri=REDIRECT_URI), oauth_client)


@pytest.mark.asyncio
async def test_authorization_code_expired(model: InMemoryModel, oauth_client: Client, user: MemoryUser) -> None:
    await _store_code(model, oauth_client, user, expires_in=timedelta(seconds=-1))
    grant_type = AuthorizationCodeGrantType(TokenIssuer(model=model))

    with pytest.raises(InvalidGrantError) as exc:
        await grant_type.handle(_token_request(code="code-123", redirect_uri=REDIRECT_URI), oauth_client)

    assert exc.value.message == "Invalid grant: authorization code has expired"


@pytest.mark.asyncio
async def test_authorization_code_naive_expiry_is_utc(
    model: InMemoryModel,
    oauth_client: Client,
    user: MemoryUser,
) -> None:
    code = AuthorizationCode(
        authorization_code="code-naive",
        expires_at=datetime.now(UTC).replace(tzinfo=None) + timedelta(minutes=5),
        redirect_uri=REDIRECT_URI,
        scope="read",
        client=oauth_client,
        user=user,
    )
    await model.save_authorization_code(_token_request(), code, oauth_client, user)
    grant_type = AuthorizationCodeGrantType(TokenIssuer(model=model, access_token_lifetime=3600))

    token = await grant_type.handle(_token_request(code="code-naive", redirect_uri=REDIRECT_URI), oauth_client)

    assert token.authorization_code == "code-naive"


@pytest.mark.asyncio
async def test_authorization_code_naive_past_expiry(
    model: InMemoryModel,
    oauth_client: Client,
    user: MemoryUser,
) -> None:
    code = AuthorizationCode(
        authorization_code="code-naive",
        expires_at=datetime.now(UTC).replace(tzinfo=None) - timedelta(seconds=1),
        redirect_uri=REDIRECT_URI,
        scope=None,
        client=oauth_client,
        user=user,
    )
    await model.save_authorization_code(_token_request(), code, oauth_client, user)
    grant_type = AuthorizationCodeGrantType(TokenIssuer(model=model))

    with pytest.raises(InvalidGrantError) as exc:
        await grant_type.handle(_token_request(code="code-naive", redirect_uri=REDIRECT_URI), oauth_client)

    assert exc.value.message == "Invalid grant: authorization code has expired"


@pytest.mark.asyncio
async def test_authorization_code_bound_to_client(model: InMemoryModel, oauth_client: Client, user: MemoryUser) -> None:
    await _store_code(model, oauth_client, user)
    other_client = Client(id="other-client", grants=["authorization_code"], redirect_uris=[REDIRECT_URI])
    grant_type = AuthorizationCodeGrantType(TokenIssuer(model=model))

    with pytest.raises(InvalidGrantError):
        await grant_type.handle(_token_request(code="code-123", redirect_uri=REDIRECT_URI), other_client)


@pytest.mark.asyncio
async def test_authorization_code_redirect_uri_must_match(
    model: InMemoryModel,
    oauth_client: Client,
    user: MemoryUser,
) -> None:
    await _store_code(model, oauth_client, user)
    grant_type = AuthorizationCodeGrantType(TokenIssuer(model=model))

    with pytest.raises(InvalidRequestError) as exc:
        await grant_type.handle(_token_request(code="code-123", redirect_uri="http://evil/cb"), oauth_client)

    assert exc.value.message == "Invalid request: `redirect_uri` is invalid"
    assert await model.get_authorization_code(_token_request(), "code-123") is not None


@pytest.mark.asyncio
async def test_authorization_code_without_stored_redirect_uri(
    model: InMemoryModel,
    oauth_client: Client,
    user: MemoryUser,
) -> None:
    await _store_code(model, oauth_client, user, redirect_uri=None)
    grant_type = AuthorizationCodeGrantType(TokenIssuer(model=model))

    token = await grant_type.handle(_token_request(code="code-123"), oauth_client)

    assert token.authorization_code == "code-123"


@pytest.mark.asyncio
async def test_authorization_code_missing_code(model: InMemoryModel, oauth_client: Client) -> None:
    grant_type = AuthorizationCodeGrantType(TokenIssuer(model=model))

    with pytest.raises(InvalidRequestError) as exc:
        await grant_type.handle(_token_request(), oauth_client)

    assert exc.value.message == "Missing parameter: `code`"


def test_authorization_code_grant_requires_model_capability() -> None:
    with pytest.raises(InvalidArgumentError) as exc:
        AuthorizationCodeGrantType(TokenIssuer(model=ClientOnlyModel()))

    assert exc.value.message == "Invalid argument: model does not implement `get_authorization_code()`"


@pytest.mark.asyncio
async def test_password_grant_issues_token(model: InMemoryModel, oauth_client: Client, user: MemoryUser) -> None:
    grant_type = PasswordGrantType(TokenIssuer(model=model, access_token_lifetime=3600, refresh_token_lifetime=7200))

    token = await grant_type.handle(
        _token_request(username="demo_user", password="demo_password", scope="read"),  # noqa: S106
        oauth_client,
    )

    assert token.user is user
    assert token.scope == "read"
    assert token.refresh_token is not None


@pytest.mark.asyncio
async def test_password_grant_rejects_bad_credentials(model: InMemoryModel, oauth_client: Client) -> None:
    grant_type = PasswordGrantType(TokenIssuer(model=model))

    with pytest.raises(InvalidGrantError) as exc:
        await grant_type.handle(_token_request(username="demo_user", password="wrong"), oauth_client)  # noqa: S106

    assert exc.value.message == "Invalid grant: user credentials are invalid"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("body", "message"),
    [
        ({"password": "demo_password"}, "Missing parameter: `username`"),
        ({"username": "demo_user"}, "Missing parameter: `password`"),
        ({"username": "demo\nuser", "password": "demo_password"}, "Invalid parameter: `username`"),
    ],
)
async def test_password_grant_validates_parameters(
    model: InMemoryModel,
    oauth_client: Client,
    body: dict[str, str],
    message: str,
) -> None:
    grant_type = PasswordGrantType(TokenIssuer(model=model))

    with pytest.raises(InvalidRequestError) as exc:
        await grant_type.handle(_token_request(**body), oauth_client)

    assert exc.value.message == message


@pytest.mark.asyncio
async def test_client_credentials_grant_issues_access_token_only(
    model: InMemoryModel,
    oauth_client: Client,
    user: MemoryUser,
) -> None:
    grant_type = ClientCredentialsGrantType(TokenIssuer(model=model, refresh_token_lifetime=7200))

    token = await grant_type.handle(_token_request(scope="read"), oauth_client)

    assert token.user is user
    assert token.refresh_token is None
    assert token.refresh_token_expires_at is None


@pytest.mark.asyncio
async def test_client_credentials_grant_requires_client_user(model: InMemoryModel) -> None:
    orphan = model.add_client(Client(id="orphan", grants=["client_credentials"]), client_secret="secret")  # noqa: S106
    grant_type = ClientCredentialsGrantType(TokenIssuer(model=model))

    with pytest.raises(InvalidGrantError):
        await grant_type.handle(_token_request(), orphan)


@pytest.mark.asyncio
async def test_implicit_grant_issues_access_token_only(
    model: InMemoryModel,
    oauth_client: Client,
    user: MemoryUser,
) -> None:
    grant_type = ImplicitGrantType(TokenIssuer(model=model, access_token_lifetime=60), user=user, scope="read")

    token = await grant_type.handle(_token_request(), oauth_client)

    assert token.scope == "read"
    assert token.refresh_token is None
    assert await model.get_access_token(_token_request(), token.access_token) is not None


def test_implicit_grant_requires_user(model: InMemoryModel) -> None:
    with pytest.raises(InvalidArgumentError) as exc:
        ImplicitGrantType(TokenIssuer(model=model), user=None, scope=None)

    assert exc.value.message == "Missing parameter: `user`"


def test_token_issuer_rejects_invalid_scope_characters(model: InMemoryModel) -> None:
    issuer = TokenIssuer(model=model)

    with pytest.raises(InvalidScopeError) as exc:
        issuer.get_scope(_token_request(scope='read "all"'))

    assert exc.value.message == "Invalid parameter: `scope`"


def test_token_issuer_treats_empty_scope_as_absent(model: InMemoryModel) -> None:
    assert TokenIssuer(model=model).get_scope(_token_request(scope="")) is None


@pytest.mark.asyncio
async def test_token_issuer_scope_hook_rejection(oauth_client: Client, user: MemoryUser) -> None:
    model = ScopeRejectingModel()
    model.add_client(oauth_client, client_secret="test-secret", user=user)  # noqa: S106
    grant_type = ClientCredentialsGrantType(TokenIssuer(model=model))

    with pytest.raises(InvalidScopeError) as exc:
        await grant_type.handle(_token_request(scope="admin"), oauth_client)

    assert exc.value.message == "Invalid scope: Requested scope is invalid"


@pytest.mark.asyncio
async def test_token_issuer_uses_generation_hooks(oauth_client: Client, user: MemoryUser) -> None:
    model = PrefixedTokenModel()
    model.add_user("demo_user", "demo_password", user)
    grant_type = PasswordGrantType(TokenIssuer(model=model))

    token = await grant_type.handle(
        _token_request(username="demo_user", password="demo_password", scope="read"),  # noqa: S106
        oauth_client,
    )

    assert token.access_token == "at-read"  # noqa: S105
    assert token.refresh_token == "rt-read"  # noqa: S105


def test_token_issuer_prefers_client_lifetimes(model: InMemoryModel) -> None:
    issuer = TokenIssuer(model=model, access_token_lifetime=3600, refresh_token_lifetime=None)
    short_lived = Client(id="short", grants=["password"], access_token_lifetime=10, refresh_token_lifetime=20)
    default = Client(id="default", grants=["password"])

    access_expiry = issuer.access_token_expires_at(short_lived)
    assert access_expiry is not None
    assert access_expiry < utcnow() + timedelta(seconds=11)
    assert issuer.refresh_token_expires_at(short_lived) is not None
    assert issuer.refresh_token_expires_at(default) is None


@pytest.mark.asyncio
async def test_token_issuer_save_token_requires_result(oauth_client: Client, user: MemoryUser) -> None:
    class DroppingModel(InMemoryModel):
        async def save_token(self, _request, _token, _client, _user) -> None:  # noqa: ANN001
            return None

    model = DroppingModel()
    model.add_client(oauth_client, client_secret="test-secret", user=user)  # noqa: S106
    grant_type = ClientCredentialsGrantType(TokenIssuer(model=model))

    with pytest.raises(ServerError):
        await grant_type.handle(_token_request(), oauth_client)
