"""Configuration module — session settings."""

from retail_session.config.settings import SessionSettings

__all__ = ["SessionSettings"]
