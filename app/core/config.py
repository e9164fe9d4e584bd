from typing import Literal

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings

ASYNC_DRIVER_PREFIXES = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
}


class Config(BaseSettings):
    database_url: str
    db_schema: str = "public"
    env: Literal["prod", "dev"] = "prod"

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000

    log_level: str = "INFO"
    log_file: str | None = None

    # CORS
    cors_origins: list[str] = ["https://itsnotagame.netlify.app"]
    cors_methods: list[str] = ["GET", "POST", "OPTIONS", "DELETE"]
    cors_headers: list[str] = ["Content-Type", "Authorization"]

    # Abort startup instead of serving with a partially reconciled schema
    schema_fail_fast: bool = False

    @field_validator("database_url")
    @classmethod
    def use_async_driver(cls, v: str) -> str:
        """Rewrite provider style Postgres URLs to the asyncpg driver."""
        for prefix, replacement in ASYNC_DRIVER_PREFIXES.items():
            if v.startswith(prefix):
                return replacement + v.removeprefix(prefix)
        return v

    @property
    def is_dev(self) -> bool:
        return self.env == "dev"


load_dotenv()
settings = Config()  # pyright: ignore[reportCallIssue]
