from typing import Literal

from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    storage: Literal["json", "mongo"] = "json"
    database_url: str = "mongodb://localhost:27017/finman"
    json_db_path: str = "data/db.json"  # Used when storage is "json"
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 5002
    debug: bool = False
    # Allowed origins for both HTTP CORS and WebSocket handshakes
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    session_ttl_days: int = 30

    model_config = {
        "env_file": [".env"],
        "env_prefix": "FINMAN_",
        "extra": "ignore",
    }
