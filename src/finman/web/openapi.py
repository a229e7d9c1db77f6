from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

from finman.web.deps import AUTH_COOKIE_NAME

# (method, path) pairs reachable without a session
PUBLIC_ENDPOINTS = {
    ("POST", "/api/v1/auth/register"),
    ("POST", "/api/v1/auth/login"),
    ("GET", "/health"),
}

SECURITY_SCHEMES: dict[str, dict[str, str]] = {
    "BearerAuth": {
        "type": "http",
        "scheme": "bearer",
        "description": "Token returned by register or login (preferred)",
    },
    "AuthTokenCookie": {
        "type": "apiKey",
        "in": "cookie",
        "name": AUTH_COOKIE_NAME,
        "description": "Same token, set as a cookie for browser clients",
    },
}


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = get_openapi(
            title="FinMan API",
            version="0.1.0",
            summary="Personal finance tracking: categories, transactions, reports and live updates",
            routes=app.routes,
        )
        schema.setdefault("components", {})["securitySchemes"] = SECURITY_SCHEMES
        schema["security"] = [{name: []} for name in SECURITY_SCHEMES]

        for path, path_item in schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in PUBLIC_ENDPOINTS:
                    operation["security"] = []

        app.openapi_schema = schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Invalid credentials", "type": "authentication_error"},
                {"message": "Category 'Salary' is for income transactions", "type": "validation_error"},
                {"message": "Cannot delete category that is being used in transactions", "type": "validation_error"},
            ]
        }
    }
