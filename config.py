"""
Configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file). The
verification client and the policy evaluator never read configuration
themselves; CaptchaService.from_settings() wires these values in.
"""

from __future__ import annotations

from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from infrastructure.captcha.recaptcha import SITEVERIFY_URL


class RecaptchaSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    recaptcha_secret: str = ""
    # Overridable for tests and self-hosted compatible services
    recaptcha_verify_url: str = SITEVERIFY_URL
    recaptcha_timeout_seconds: float = 5.0

    # Policy
    recaptcha_expected_action: str = ""
    recaptcha_min_score: float = 0.5
    recaptcha_hostnames: list[str] = []

    @field_validator("recaptcha_min_score", mode="after")
    @classmethod
    def _validate_min_score(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("recaptcha_min_score must be between 0.0 and 1.0")
        return v


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"

    # Sub-configs (composed via model_validator below)
    recaptcha: Optional[RecaptchaSettings] = None
    logging: Optional[LoggingSettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.recaptcha is None:
            self.recaptcha = RecaptchaSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
