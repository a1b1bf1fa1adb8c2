"""Application configuration using pydantic settings with structured sections."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./marketplace.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None


class LedgerSettings(BaseModel):
    """Fee schedule and retry budget, all amounts in cents."""

    currency: str = "EUR"
    listing_fee_rate_bps: int = Field(default=50, ge=0)
    listing_fee_minimum_cents: int = Field(default=50, ge=0)
    reserve_fee_cents: int = Field(default=20, ge=0)
    min_deposit_cents: int = Field(default=1, ge=1)
    history_page_limit: int = Field(default=100, ge=1)
    max_attempts: int = Field(default=3, ge=1)
    retry_backoff_seconds: float = Field(default=0.02, ge=0)


class SupportSettings(BaseModel):
    default_language: str = "en"
    ticket_title: str = "Chat Support Request"
    ticket_priority: str = "medium"
    welcome_message: str = "Hi! I'm the marketplace assistant. How can I help you today?"
    escalated_message: str = "Your request has been forwarded to our support team. An agent will join shortly."


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "Marketplace Ledger Server"
    api_prefix: str = "/api"

    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    ledger: LedgerSettings = LedgerSettings()
    support: SupportSettings = SupportSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def port(self) -> int:
        return self.server.port


@lru_cache()
def get_settings() -> Settings:
    return Settings()
