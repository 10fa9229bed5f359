"""
Application configuration via environment variables.

Uses Pydantic BaseSettings to load and validate all config from env vars
or a .env.local file. Every setting has a sensible default for local
development so the app can start with minimal configuration.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment selector."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """
    Central configuration for the call intake service.

    Values are loaded from environment variables first, falling back
    to a `.env.local` file in the project root. Secrets should NEVER
    be committed; use `.env.example` as the template.
    """

    model_config = SettingsConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Environment ──────────────────────────────────────────────
    environment: Environment = Environment.DEVELOPMENT

    # ── Supabase ─────────────────────────────────────────────────
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_service_key: str = Field(default="", description="Supabase service-role key")

    # ── Tenant ───────────────────────────────────────────────────
    tenant_project_name: str = Field(
        default="kfz-sachverstaendiger",
        description="Tenant project looked up (or created) at startup",
    )
    tenant_project_id: Optional[str] = Field(
        default=None,
        description="Explicit tenant project ID; skips the startup lookup",
    )

    # ── Record defaults ──────────────────────────────────────────
    default_city: str = Field(default="Bielefeld", description="City used when an address has none")
    agent_version: str = Field(default="markus-v3-enhanced", description="Voice agent version stored with records")
    record_source: str = Field(default="retell_call", description="Source tag for created customers")

    # ── Appointment scheduling ───────────────────────────────────
    business_hours_start: int = Field(default=8, ge=0, le=23)
    business_hours_end: int = Field(default=18, ge=0, le=23)
    default_appointment_hour: int = Field(default=10, ge=0, le=23)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO", description="Root log level")

    @model_validator(mode="after")
    def _check_business_hours(self) -> "Settings":
        if self.business_hours_start > self.business_hours_end:
            raise ValueError("business_hours_start must not be after business_hours_end")
        return self

    # ── Derived helpers ──────────────────────────────────────────

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return cached Settings instance.

    Using lru_cache ensures we read env vars exactly once, and every
    module that calls ``get_settings()`` gets the same object.
    """
    return Settings()
