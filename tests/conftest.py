"""Shared test fixtures for the retail-session test suite."""

from __future__ import annotations

import os
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from retail_session.config.settings import SessionSettings
from retail_session.filter.navigation import NavigationFilter
from retail_session.filter.phase import LandingDetector
from retail_session.proxy.registry import ProxyRegistry


# ---------------------------------------------------------------------------
# Keep the developer's RETAIL_SESSION_* environment out of the tests
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("RETAIL_SESSION_"):
            monkeypatch.delenv(key)


# ---------------------------------------------------------------------------
# Settings / registry fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> SessionSettings:
    """Test settings with safe defaults."""
    return SessionSettings(
        proxy_config_path="does-not-exist.json",
        proxy_mode="sequential",
        headless=True,
        log_json=False,
    )


@pytest.fixture
def proxy_document() -> dict:
    return {
        "proxies": [
            {"id": "p1", "name": "Proxy 1", "server": "http://10.0.0.1:3128"},
            {"id": "p2", "name": "Proxy 2", "server": "http://10.0.0.2:3128"},
            {
                "id": "p3",
                "name": "Proxy 3",
                "server": "http://10.0.0.3:3128",
                "username": "alice",
                "password": "s3cret",
            },
            {"id": "p4", "name": "Retired", "server": "http://10.0.0.4:3128", "active": False},
        ]
    }


@pytest.fixture
def registry(proxy_document: dict) -> ProxyRegistry:
    reg = ProxyRegistry()
    reg.load(proxy_document)
    return reg


# ---------------------------------------------------------------------------
# Filter fixtures
# ---------------------------------------------------------------------------

class PageUrl:
    """Mutable stand-in for ``page.url``."""

    def __init__(self, url: str = "about:blank") -> None:
        self.url = url

    def __call__(self) -> str:
        return self.url


@pytest.fixture
def page_url() -> PageUrl:
    return PageUrl()


@pytest.fixture
def nav_filter(page_url: PageUrl) -> NavigationFilter:
    return NavigationFilter(
        detector=LandingDetector(),
        page_url=page_url,
        session_id="test",
    )


def make_route(url: str, resource_type: str) -> SimpleNamespace:
    """Route double exposing ``request``, ``abort`` and ``continue_``."""
    return SimpleNamespace(
        request=SimpleNamespace(url=url, resource_type=resource_type),
        abort=AsyncMock(),
        continue_=AsyncMock(),
    )


@pytest.fixture
def route_factory():
    return make_route

