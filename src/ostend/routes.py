from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, status
from fastapi import Request as HTTPRequest
from fastapi import Response as HTTPResponse
from fastapi.responses import JSONResponse, RedirectResponse

from ostend.errors import OAuthError
from ostend.models import AccessToken  # noqa: TC001
from ostend.request import Request, Response
from ostend.token_types import OAuthErrorResponse

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ostend.server import OAuth2Server

logger = logging.getLogger(__name__)

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def create_oauth_router(
    server: OAuth2Server,
    *,
    prefix: str = "/oauth",
    authenticate_handler: object | None = None,
) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=["oauth"])

    async def authorize_handler(request: HTTPRequest) -> HTTPResponse:
        oauth_request = await to_oauth_request(request)
        oauth_response = Response()
        try:
            await server.authorize(oauth_request, oauth_response, authenticate_handler=authenticate_handler)
        except OAuthError as exc:
            if exc.redirect_uri is None:
                return _error_response(exc)
        return _render(oauth_response)

    async def token_handler(request: HTTPRequest) -> HTTPResponse:
        oauth_request = await to_oauth_request(request)
        oauth_response = Response()
        try:
            await server.token(oauth_request, oauth_response)
        except OAuthError as exc:
            if not oauth_response.body:
                return _error_response(exc)
        return _render(oauth_response)

    router.add_api_route("/authorize", authorize_handler, methods=["GET", "POST"])
    router.add_api_route("/token", token_handler, methods=["POST"])
    return router


def bearer_token_dependency(
    server: OAuth2Server,
    scope: str | None = None,
) -> Callable[[HTTPRequest, HTTPResponse], Awaitable[AccessToken]]:
    async def dependency(request: HTTPRequest, response: HTTPResponse) -> AccessToken:
        oauth_request = await to_oauth_request(request)
        oauth_response = Response()
        try:
            access_token = await server.authenticate(oauth_request, oauth_response, scope=scope)
        except OAuthError as exc:
            raise HTTPException(
                status_code=exc.status_code,
                detail=OAuthErrorResponse(**exc.to_dict()).model_dump(exclude_none=True),
                headers=exc.headers or None,
            ) from exc

        for name, value in oauth_response.headers.items():
            response.headers[name] = value
        return access_token

    return dependency


async def to_oauth_request(request: HTTPRequest) -> Request:
    content_type = request.headers.get("content-type", "").split(";", 1)[0].strip().lower()
    body: dict[str, object] = {}
    if request.method != "GET" and content_type == _FORM_CONTENT_TYPE:
        form = await request.form()
        body = {key: value for key, value in form.items() if isinstance(value, str)}

    return Request(
        method=request.method,
        query=dict(request.query_params),
        body=body,
        headers=dict(request.headers),
    )


def _render(response: Response) -> HTTPResponse:
    headers = {name: value for name, value in response.headers.items() if name != "location"}
    if response.location is not None:
        logger.debug("Redirecting OAuth response")
        return RedirectResponse(url=response.location, status_code=status.HTTP_302_FOUND, headers=headers)
    return JSONResponse(response.body, status_code=response.status_code, headers=headers)


def _error_response(exc: OAuthError) -> JSONResponse:
    payload = OAuthErrorResponse(**exc.to_dict())
    return JSONResponse(
        payload.model_dump(exclude_none=True),
        status_code=exc.status_code,
        headers=exc.headers or None,
    )
