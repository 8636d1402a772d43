"""Error hierarchy for retail-session.

All package-specific errors extend RetailSessionError. Configuration problems
are raised by the internal parsers and recovered by their public callers
(``ProxyRegistry.load``, ``load_block_rules``), which log them and degrade to
an empty pool or the built-in rule tables. Nothing here is meant to reach the
browser engine.
"""

from __future__ import annotations


class RetailSessionError(Exception):
    """Base error for all retail-session errors."""

    message: str = "Retail session error"

    def __init__(self, message: str | None = None, **kwargs: object) -> None:
        self.message = message or self.__class__.message
        self.details = kwargs
        super().__init__(self.message)


class ProxyConfigError(RetailSessionError):
    """Proxy configuration document is missing, unreadable or malformed."""

    message = "Invalid proxy configuration"


class BlockRulesError(RetailSessionError):
    """Block rule override document is unreadable or malformed."""

    message = "Invalid block rules configuration"


class UnknownPresetError(RetailSessionError):
    """Optimization preset name is not one of the known presets."""

    message = "Unknown optimization preset"
