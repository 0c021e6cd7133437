"""
Application settings (Pydantic Settings).
"""
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic import field_validator
from pydantic_settings import BaseSettings

DEFAULT_TOKEN_FILE = Path.home() / ".config" / "bygolf-calendar" / "token"


class Settings(BaseSettings):
    api_base_url: str = "https://api.yourgolfbooking.com"
    venue: str = "bygolf"
    timezone: str = "Europe/Stockholm"
    # BYGOLF_TOKEN in env or .env; the token file is used when this is empty
    token: str = ""
    token_file: Path = DEFAULT_TOKEN_FILE
    request_timeout: float = 30.0
    refresh_interval: float = 30.0  # silent booking refresh, seconds
    tick_interval: float = 60.0  # now-marker update, seconds
    row_height: int = 40

    class Config:
        env_prefix = "BYGOLF_"
        env_file = ".env"
        extra = "ignore"

    @field_validator("token", mode="after")
    @classmethod
    def strip_token(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("api_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def get_settings() -> Settings:
    return Settings()
