"""Pydantic Settings for browsing sessions.

All environment variables use the RETAIL_SESSION_ prefix.
Example: RETAIL_SESSION_PROXY_MODE=sequential, RETAIL_SESSION_OPTIMIZE=minimal
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from retail_session.errors import UnknownPresetError
from retail_session.filter.tables import preset_name


class SessionSettings(BaseSettings):
    """Session driver configuration validated from environment variables."""

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Proxy
    proxy_config_path: str = "config/proxies.json"
    proxy_mode: str = "none"  # none | sequential | random | <proxy id>

    # Landing page optimization
    optimize: str = "balanced"  # preset name, or "off"
    block_rules_path: str | None = None  # YAML overrides for the rule tables
    landing_url: str = "https://www.coupang.com"
    target_page_pattern: str = r"/np/search"
    landing_page_pattern: str | None = None
    blocked_log_limit: int = Field(default=5, ge=0)
    phase_trigger: Literal["request", "navigation"] = "request"

    # Browser
    navigation_timeout_ms: int = Field(default=60000, ge=1000)
    headless: bool = False
    browser_channel: str | None = None

    model_config = {"env_prefix": "RETAIL_SESSION_"}

    @field_validator("optimize")
    @classmethod
    def _check_preset(cls, value: str) -> str:
        try:
            return preset_name(value) or "off"
        except UnknownPresetError as exc:
            raise ValueError(exc.message) from exc

    @field_validator("target_page_pattern", "landing_page_pattern")
    @classmethod
    def _check_pattern(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                re.compile(value)
            except re.error as exc:
                raise ValueError(f"invalid regular expression {value!r}: {exc}") from exc
        return value

    @property
    def optimization_preset(self) -> str | None:
        """Preset name to install, or ``None`` when optimization is off."""
        return None if self.optimize == "off" else self.optimize
