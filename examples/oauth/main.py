from fastapi import Depends, FastAPI

from ostend import AccessToken, Client, InMemoryModel, OAuth2Server, OAuthServerSettings
from ostend.routes import bearer_token_dependency, create_oauth_router

model = InMemoryModel()
model.add_client(
    Client(
        id="demo-client",
        grants=["authorization_code", "implicit", "password", "refresh_token"],
        redirect_uris=["http://localhost:8000/client/callback"],
    ),
    client_secret="demo-secret",  # noqa: S106
)
model.add_user("demo", "demo-password")

server = OAuth2Server(
    model,
    OAuthServerSettings(
        access_token_lifetime=3600,
        require_client_authentication={"password": False},
    ),
)

app = FastAPI(title="Ostend OAuth Server Example")
app.include_router(create_oauth_router(server))


@app.get("/")
async def home() -> dict[str, str]:
    return {
        "message": "ostend oauth server example",
        "authorize": "/oauth/authorize",
        "token": "/oauth/token",
        "protected": "/me",
        "client_callback": "/client/callback",
    }


@app.get("/me")
async def me(
    token: AccessToken = Depends(bearer_token_dependency(server, scope="user")),  # noqa: B008
) -> dict[str, str | None]:
    return {
        "user": token.user.username,
        "client": token.client.id,
        "scope": token.scope,
    }


@app.get("/client/callback")
async def client_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
) -> dict[str, str | None]:
    return {
        "code": code,
        "state": state,
        "error": error,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)  # noqa: S104
