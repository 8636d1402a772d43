"""Session driver composing proxy selection and the landing-page filter.

Lifecycle
---------
1. ``launch_browser(playwright, settings)`` — start Chromium.
2. ``open(browser)`` — select a proxy, open a context routed through it,
   open a page and install the navigation filter before any navigation.
3. ``goto_landing(session)`` — navigate to the landing page.
4. ``close(session)`` — log filter stats and close the context.

The registry and the filter never see each other; the driver correlates one
proxy and one filter per session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from playwright.async_api import Error as PlaywrightError

from retail_session.filter.navigation import NavigationFilter, install_navigation_filter
from retail_session.filter.phase import LandingDetector
from retail_session.filter.tables import BlockRules, build_rule_table, load_block_rules

if TYPE_CHECKING:
    from playwright.async_api import Browser, Playwright, Response

    from retail_session.config.settings import SessionSettings
    from retail_session.proxy.registry import ProxyRegistry
    from retail_session.proxy.types import ProxyDescriptor

logger = logging.getLogger(__name__)

CHROMIUM_ARGS: list[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
]


@dataclass
class BrowsingSession:
    """One logical browsing session: a context, its page, proxy and filter."""

    id: str
    context: Any  # playwright.async_api.BrowserContext at runtime
    page: Any  # playwright.async_api.Page at runtime
    proxy: "ProxyDescriptor | None" = None
    filter: NavigationFilter | None = None

    @property
    def proxy_id(self) -> str | None:
        return self.proxy.id if self.proxy is not None else None


async def launch_browser(playwright: "Playwright", settings: "SessionSettings") -> "Browser":
    """Launch Chromium with the session settings."""
    launch_kwargs: dict[str, Any] = {"headless": settings.headless, "args": CHROMIUM_ARGS}
    if settings.browser_channel:
        launch_kwargs["channel"] = settings.browser_channel
    return await playwright.chromium.launch(**launch_kwargs)


class SessionDriver:
    """Opens browsing sessions bound to a proxy with the landing filter installed.

    One driver (and its registry) may be shared by concurrently running
    sessions; each session gets its own filter.
    """

    def __init__(
        self,
        registry: "ProxyRegistry",
        settings: "SessionSettings",
        *,
        block_rules: BlockRules | None = None,
    ) -> None:
        self._registry = registry
        self._settings = settings
        self._detector = LandingDetector(
            settings.target_page_pattern, settings.landing_page_pattern
        )

        preset = settings.optimization_preset
        if block_rules is None and preset is not None:
            block_rules = load_block_rules(settings.block_rules_path, preset)
        self._table = build_rule_table(block_rules) if block_rules is not None else None

    async def open(self, browser: "Browser", *, proxy_mode: str | None = None) -> BrowsingSession:
        """Open a new context and page for one session."""
        session_id = uuid4().hex[:8]
        proxy = self._registry.select(proxy_mode or self._settings.proxy_mode)

        context_kwargs: dict[str, Any] = {}
        if proxy is not None:
            context_kwargs["proxy"] = proxy.to_playwright()
        context = await browser.new_context(**context_kwargs)
        try:
            context.set_default_navigation_timeout(self._settings.navigation_timeout_ms)
            page = await context.new_page()

            nav_filter = await install_navigation_filter(
                page,
                self._settings.optimization_preset,
                table=self._table,
                detector=self._detector,
                trigger=self._settings.phase_trigger,
                blocked_log_limit=self._settings.blocked_log_limit,
                session_id=session_id,
            )
        except BaseException:
            await self._close_context(context, session_id)
            raise

        logger.info(
            "Session opened (%s)",
            f"proxy {proxy.name} {proxy.server}" if proxy is not None else "direct",
            extra={"session_id": session_id, "proxy_id": proxy.id if proxy else None},
        )
        return BrowsingSession(
            id=session_id,
            context=context,
            page=page,
            proxy=proxy,
            filter=nav_filter,
        )

    async def goto_landing(self, session: BrowsingSession) -> "Response | None":
        """Navigate the session's page to the landing URL."""
        return await session.page.goto(
            self._settings.landing_url,
            wait_until="load",
            timeout=self._settings.navigation_timeout_ms,
        )

    async def close(self, session: BrowsingSession) -> None:
        """Close the session's context; the filter state goes with it."""
        if session.filter is not None:
            logger.info(
                "Session closed: %s",
                session.filter.stats(),
                extra={"session_id": session.id, "proxy_id": session.proxy_id},
            )
        await self._close_context(session.context, session.id)

    @staticmethod
    async def _close_context(context: Any, session_id: str) -> None:
        try:
            await context.close()
        except PlaywrightError:
            logger.debug("Error closing session %s (may already be closed)", session_id, exc_info=True)
