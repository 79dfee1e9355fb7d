from typing import Literal

from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str
    port: int
    debug: bool
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    token_ttl_days: int = 7  # Lifetime of issued bearer tokens
    auth_mode: Literal["code", "password"] = "code"  # Which login flow the API exposes
    cors_origins: list[str] = []
    code_ttl_minutes: int = 10
    code_length: int = 6
    resend_api_key: str | None = None  # Without a key, codes are logged instead of mailed
    resend_api_url: str = "https://api.resend.com"
    mail_from: str = "numbervault <no-reply@localhost>"
    mail_timeout: float = 5.0

    model_config = {
        "env_file": [".env"],
        "env_prefix": "NUMBERVAULT_",
        "extra": "ignore",
    }
