from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from finman.web.deps import AUTH_COOKIE_NAME, AppDep, AuthTokenDep
from finman.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])

COOKIE_MAX_AGE = 30 * 24 * 60 * 60  # 30 days to match default session TTL


class RegisterRequest(BaseModel):
    """Account registration request."""

    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address, used to log in")
    password: str = Field(..., description="Password, at least 6 characters")

    model_config = {
        "json_schema_extra": {"examples": [{"name": "Jane Doe", "email": "jane@example.com", "password": "secret123"}]}
    }


class LoginRequest(BaseModel):
    """Authentication request."""

    email: str = Field(..., description="Email for authentication")
    password: str = Field(..., description="Password for authentication")


class LoginResponse(BaseModel):
    """Authentication response."""

    token: str = Field(..., description="Authentication token for subsequent requests")


def set_auth_cookie(response: Response, token: str) -> None:
    """Set cookie for browser-based clients."""
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=False,  # Set to True in production with HTTPS
        max_age=COOKIE_MAX_AGE,
    )


@router.post(
    "/auth/register",
    summary="Register account",
    description="Create a new account with the default category set and start a session.",
    operation_id="register",
    status_code=201,
    responses={
        201: {"description": "Account created"},
        400: {"model": ErrorResponse, "description": "Invalid data or email already registered"},
    },
)
async def register(req: RegisterRequest, app: AppDep, response: Response) -> LoginResponse:
    token = await app.register(req.name, req.email, req.password)
    set_auth_cookie(response, token)
    return LoginResponse(token=token)


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with email and password to receive an authentication token.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(login_data: LoginRequest, app: AppDep, response: Response) -> LoginResponse:
    """Authenticate user and create session."""

    token = await app.login(login_data.email, login_data.password)
    set_auth_cookie(response, token)
    return LoginResponse(token=token)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Invalidate the current authentication session.",
    operation_id="logout",
    status_code=204,
    responses={
        204: {"description": "Successfully logged out"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def logout(app: AppDep, auth_token: AuthTokenDep, response: Response) -> None:
    await app.logout(auth_token)
    response.delete_cookie(AUTH_COOKIE_NAME)
