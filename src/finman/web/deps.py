from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie, HTTPAuthorizationCredentials, HTTPBearer

from finman.app import App
from finman.core.modules.session.models import AuthToken
from finman.errors import AuthenticationError

AUTH_COOKIE_NAME = "auth_token"

bearer_scheme = HTTPBearer(auto_error=False)
cookie_scheme = APIKeyCookie(name=AUTH_COOKIE_NAME, auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


def candidate_tokens(credentials: HTTPAuthorizationCredentials | None, cookie: str | None) -> list[AuthToken]:
    """Tokens to try, Bearer header first."""
    tokens = []
    if credentials and credentials.scheme.lower() == "bearer" and credentials.credentials:
        tokens.append(AuthToken(credentials.credentials))
    if cookie:
        tokens.append(AuthToken(cookie))
    return tokens


async def get_auth_token(
    app: Annotated[App, Depends(get_app)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
    token_cookie: Annotated[str | None, Depends(cookie_scheme)] = None,
) -> AuthToken:
    """Return the first valid session token from the Authorization header or cookie."""
    for auth_token in candidate_tokens(credentials, token_cookie):
        if await app.is_auth_token_valid(auth_token):
            return auth_token
    raise AuthenticationError("Not authorized to access this route")


AppDep = Annotated[App, Depends(get_app)]
AuthTokenDep = Annotated[AuthToken, Depends(get_auth_token)]
