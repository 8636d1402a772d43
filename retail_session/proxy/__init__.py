"""Proxy package — descriptor types and the selection registry."""

from retail_session.proxy.registry import (
    MODE_NONE,
    MODE_RANDOM,
    MODE_SEQUENTIAL,
    ProxyRegistry,
)
from retail_session.proxy.types import ProxyCredentials, ProxyDescriptor

__all__ = [
    "MODE_NONE",
    "MODE_RANDOM",
    "MODE_SEQUENTIAL",
    "ProxyCredentials",
    "ProxyDescriptor",
    "ProxyRegistry",
]
