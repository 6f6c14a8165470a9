from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ostend.models import AccessToken, RefreshToken

if TYPE_CHECKING:
    from ostend.models import AuthorizationCode, Client, Token, User
    from ostend.request import Request


@dataclass(slots=True, kw_only=True)
class MemoryUser:
    id: str
    username: str


@dataclass(slots=True, kw_only=True)
class _ClientRecord:
    client: Client
    client_secret: str | None
    user: User | None


class InMemoryModel:
    """Dictionary-backed persistence model implementing every collaborator capability.

    Lookups and revocations never await between the check and the removal, so a code or
    refresh token can be redeemed at most once on a single event loop.
    """

    def __init__(self) -> None:
        self._clients: dict[str, _ClientRecord] = {}
        self._users: dict[str, tuple[str, User]] = {}
        self._authorization_codes: dict[str, AuthorizationCode] = {}
        self._access_tokens: dict[str, AccessToken] = {}
        self._refresh_tokens: dict[str, RefreshToken] = {}

    def add_client(self, client: Client, *, client_secret: str | None = None, user: User | None = None) -> Client:
        self._clients[client.id] = _ClientRecord(client=client, client_secret=client_secret, user=user)
        return client

    def add_user(self, username: str, password: str, user: User | None = None) -> User:
        stored = user if user is not None else MemoryUser(id=username, username=username)
        self._users[username] = (password, stored)
        return stored

    async def get_client(self, _request: Request, client_id: str, client_secret: str | None) -> Client | None:
        record = self._clients.get(client_id)
        if record is None:
            return None
        if client_secret is None:
            return record.client
        if record.client_secret is None or not secrets.compare_digest(record.client_secret, client_secret):
            return None
        return record.client

    async def get_user(self, _request: Request, username: str, password: str) -> User | None:
        entry = self._users.get(username)
        if entry is None:
            return None
        stored_password, user = entry
        if not secrets.compare_digest(stored_password, password):
            return None
        return user

    async def get_user_from_client(self, _request: Request, client: Client) -> User | None:
        record = self._clients.get(client.id)
        if record is None:
            return None
        return record.user

    async def save_authorization_code(
        self,
        _request: Request,
        code: AuthorizationCode,
        _client: Client,
        _user: User,
    ) -> AuthorizationCode:
        self._authorization_codes[code.authorization_code] = code
        return code

    async def get_authorization_code(self, _request: Request, authorization_code: str) -> AuthorizationCode | None:
        return self._authorization_codes.get(authorization_code)

    async def revoke_authorization_code(self, _request: Request, code: AuthorizationCode) -> bool:
        return self._authorization_codes.pop(code.authorization_code, None) is not None

    async def save_token(self, _request: Request, token: Token, client: Client, user: User) -> Token:
        self._access_tokens[token.access_token] = AccessToken(
            access_token=token.access_token,
            access_token_expires_at=token.access_token_expires_at,
            scope=token.scope,
            client=client,
            user=user,
        )
        if token.refresh_token:
            self._refresh_tokens[token.refresh_token] = RefreshToken(
                refresh_token=token.refresh_token,
                refresh_token_expires_at=token.refresh_token_expires_at,
                scope=token.scope,
                client=client,
                user=user,
            )
        return token

    async def get_access_token(self, _request: Request, access_token: str) -> AccessToken | None:
        return self._access_tokens.get(access_token)

    async def get_refresh_token(self, _request: Request, refresh_token: str) -> RefreshToken | None:
        return self._refresh_tokens.get(refresh_token)

    async def revoke_token(self, _request: Request, token: RefreshToken) -> bool:
        return self._refresh_tokens.pop(token.refresh_token, None) is not None

    async def verify_scope(self, _request: Request, token: AccessToken, scope: str) -> bool:
        granted = set((token.scope or "").split())
        return set(scope.split()) <= granted
