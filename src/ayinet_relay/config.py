"""
Server settings, read from the environment.

`DATABASE_URL`, `HOST` and `PORT` keep their conventional names; everything
else is prefixed with `AYINET_`.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ayinet_relay.errors import ConfigError

DEFAULT_PORT = 5000


class Settings(BaseSettings):
    database_url: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")
    database_ssl: Optional[str] = "require"
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=DEFAULT_PORT, validation_alias="PORT")
    cors_allowed_origins: str = "*"
    notify_failures: bool = False
    init_schema: bool = True
    in_memory: bool = False
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="AYINET_", populate_by_name=True)

    def require_database(self) -> str:
        if self.in_memory:
            return ""
        if not self.database_url:
            raise ConfigError(
                "DATABASE_URL environment variable is not set. "
                "Connect a PostgreSQL database or run with --in-memory."
            )
        return self.database_url

    def cors_origins(self) -> "str | list[str]":
        if self.cors_allowed_origins.strip() == "*":
            return "*"
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]
