from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

PUBLIC_PREFIXES = ("/api/v1/auth/", "/api/v1/numbers", "/health")


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="numbervault API",
            version="0.1.0",
            summary="Serial-numbered records and email-code authentication",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
            },
        }
        openapi_schema["security"] = [{"BearerAuth": []}]

        # Remove security from public endpoints
        for path, path_item in openapi_schema["paths"].items():
            if path.startswith(PUBLIC_PREFIXES):
                for operation in path_item.values():
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "expired", "type": "validation_error"},
                {"message": "Email already registered", "type": "conflict"},
                {"message": "Unauthorized", "type": "authentication_error"},
            ]
        }
    }
