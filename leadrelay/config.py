from functools import lru_cache
from typing import Annotated, Dict, List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_LOCATION_KEYWORDS: Dict[str, int] = {
    "ahwatukee": 20,
    "midtown": 18,
    "moon": 16,
    "mesa": 14,
    "scottsdale": 12,
    "phoenix": 10,
    "valley": 6,
    "32nd": 6,
}


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field(default="Lead Relay Webhooks")
    cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=list)

    crm_base_url: AnyHttpUrl = Field(
        default="https://api.intellikidsystems.com/api/v2"
    )
    crm_token: str = Field(default="")
    crm_timeout: float = Field(default=15.0)

    google_lead_key: str = Field(default="")
    location_question_column_id: str = Field(default="your_preferred_option")

    source_value: str = Field(default="Google Ads - Tanner")
    force_source: bool = Field(default=True)
    google_fallback_source: str = Field(default="Google")
    site_fallback_source: str = Field(default="Website")

    country_calling_code: str = Field(default="+1")
    default_first_name: str = Field(default="Lead")
    default_last_name: str = Field(default="From Website")
    google_placeholder_name: str = Field(default="Google Lead")
    site_placeholder_name: str = Field(default="Website Lead")

    fallback_location_id: str | None = Field(default=None)
    location_keywords: Dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_LOCATION_KEYWORDS)
    )

    forward_alternate_shapes: bool = Field(default=False)
    enable_echo: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_prefix="LEADRELAY_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("cors_origins", mode="before")
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("source_value", mode="after")
    def _strip_source(cls, value: str) -> str:
        return value.strip()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
