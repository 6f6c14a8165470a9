from __future__ import annotations

from datetime import timedelta

import pytest
import pytest_asyncio

from ostend.memory import InMemoryModel, MemoryUser
from ostend.models import Client, Token
from ostend.request import Request
from ostend.utils import utcnow

ALL_GRANTS = ["authorization_code", "implicit", "refresh_token", "password", "client_credentials"]


@pytest.fixture
def user() -> MemoryUser:
    return MemoryUser(id="user-1", username="demo_user")


@pytest.fixture
def oauth_client() -> Client:
    return Client(
        id="test-client",
        grants=list(ALL_GRANTS),
        redirect_uris=["http://testserver/callback"],
    )


@pytest.fixture
def model(oauth_client: Client, user: MemoryUser) -> InMemoryModel:
    model = InMemoryModel()
    model.add_client(oauth_client, client_secret="test-secret", user=user)  # noqa: S106
    model.add_user("demo_user", "demo_password", user)
    return model


@pytest_asyncio.fixture
async def access_token(model: InMemoryModel, oauth_client: Client, user: MemoryUser) -> str:
    token = Token(
        access_token="access-123",  # noqa: S106
        access_token_expires_at=utcnow() + timedelta(hours=1),
        scope="read write",
        client=oauth_client,
        user=user,
    )
    await model.save_token(Request(method="POST"), token, oauth_client, user)
    return token.access_token
