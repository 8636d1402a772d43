"""Landing-page request filter installed on a Playwright page.

While the page is on the landing page the filter aborts non-essential
requests (images, media, fonts, ad/analytics vendors) to speed up the load
before search. The first time the page is seen off the landing page the
filter switches to passthrough for the rest of the session and logs its final
tally. Every intercepted route is resolved exactly once, with continue as the
fallback when deciding fails.

Each ``NavigationFilter`` owns its ``FilterSession``; filters on different
pages share no state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from playwright.async_api import Error as PlaywrightError

from retail_session.filter.phase import FilterPhase, LandingDetector, PhaseMachine
from retail_session.filter.rules import Decision, InterceptedRequest, ResourceKind, RuleTable
from retail_session.filter.tables import build_rule_table, get_preset, preset_name

if TYPE_CHECKING:
    from playwright.async_api import Frame, Page, Route

logger = logging.getLogger(__name__)

TRIGGER_REQUEST = "request"
TRIGGER_NAVIGATION = "navigation"
TRIGGERS = (TRIGGER_REQUEST, TRIGGER_NAVIGATION)

LOG_URL_LENGTH = 80


def _truncate(url: str, limit: int = LOG_URL_LENGTH) -> str:
    return url if len(url) <= limit else url[:limit] + "..."


@dataclass
class FilterSession:
    """Per-page filter state. Counters only ever go up."""

    id: str
    machine: PhaseMachine = field(default_factory=PhaseMachine)
    blocked_count: int = 0
    allowed_count: int = 0
    passthrough_count: int = 0

    @property
    def active(self) -> bool:
        return self.machine.optimizing

    @property
    def phase(self) -> FilterPhase:
        return self.machine.phase


class NavigationFilter:
    """Per-request allow/block decisions that switch off after the landing page.

    Args:
        table: Rule table evaluated while optimizing (default: ``balanced``).
        detector: Judges whether a page URL is still the landing page.
        page_url: Callable returning the current page URL; consulted on every
            intercepted request when the trigger is ``"request"``.
        trigger: ``"request"`` observes the page URL on each intercepted
            request; ``"navigation"`` leaves that to ``observe_page_url``
            being called from a navigation event.
        blocked_log_limit: Number of blocked requests logged individually.
        session_id: Identifier used in log records.
    """

    def __init__(
        self,
        table: RuleTable | None = None,
        detector: LandingDetector | None = None,
        *,
        page_url: Callable[[], str] | None = None,
        trigger: str = TRIGGER_REQUEST,
        blocked_log_limit: int = 5,
        session_id: str | None = None,
    ) -> None:
        if trigger not in TRIGGERS:
            raise ValueError(f"Unknown phase trigger {trigger!r}; expected one of {TRIGGERS}")
        self._table = table or build_rule_table()
        self._detector = detector or LandingDetector()
        self._page_url = page_url
        self._trigger = trigger
        self._blocked_log_limit = blocked_log_limit
        self.session = FilterSession(id=session_id or uuid4().hex[:8])

    @property
    def trigger(self) -> str:
        return self._trigger

    # ------------------------------------------------------------------
    # Phase transition
    # ------------------------------------------------------------------

    def observe_page_url(self, page_url: str | None) -> bool:
        """Feed the current page URL; returns ``True`` if filtering just stopped."""
        session = self.session
        if not session.active or not self._detector.has_left_landing(page_url):
            return False
        if not session.machine.advance():
            return False

        logger.info(
            "Left landing page; request filter off (blocked %d, allowed %d)",
            session.blocked_count,
            session.allowed_count,
            extra=self._log_fields(),
        )
        return True

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def decide(
        self,
        request_url: str,
        resource_type: str | None,
        page_url: str | None = None,
    ) -> Decision:
        """Decide one request and update the counters.

        When *page_url* is given it is observed first, so the request that
        reveals the page has left the landing page is already let through.
        """
        if page_url is not None:
            self.observe_page_url(page_url)

        session = self.session
        if not session.active:
            session.passthrough_count += 1
            return Decision.ALLOW

        request = InterceptedRequest(
            url=request_url or "",
            kind=ResourceKind.classify(resource_type),
        )
        verdict = self._table.evaluate(request)

        if verdict.decision is Decision.BLOCK:
            session.blocked_count += 1
            if session.blocked_count <= self._blocked_log_limit:
                logger.info(
                    "Blocked %s (%s): %s",
                    request.kind.value,
                    verdict.rule,
                    _truncate(request.url),
                    extra=self._log_fields(),
                )
        else:
            session.allowed_count += 1
        return verdict.decision

    async def handle_route(self, route: "Route") -> None:
        """Playwright route handler: abort or continue the route exactly once."""
        try:
            request = route.request
            page_url = None
            if self._trigger == TRIGGER_REQUEST and self._page_url is not None:
                page_url = self._page_url()
            decision = self.decide(request.url, request.resource_type, page_url)
        except Exception:  # noqa: BLE001
            logger.debug("Request filter failed; letting request through", exc_info=True)
            decision = Decision.ALLOW

        try:
            if decision is Decision.BLOCK:
                await route.abort()
            else:
                await route.continue_()
        except PlaywrightError as exc:
            # Page or context already closed
            logger.debug("Route resolution failed: %s", exc)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def stats(self) -> dict[str, Any]:
        session = self.session
        return {
            "phase": session.phase.value,
            "blocked_count": session.blocked_count,
            "allowed_count": session.allowed_count,
            "passthrough_count": session.passthrough_count,
        }

    def _log_fields(self) -> dict[str, Any]:
        return {
            "session_id": self.session.id,
            "phase": self.session.phase.value,
            "blocked_count": self.session.blocked_count,
            "allowed_count": self.session.allowed_count,
        }


async def install_navigation_filter(
    page: "Page",
    optimize: bool | str | None,
    *,
    table: RuleTable | None = None,
    detector: LandingDetector | None = None,
    trigger: str = TRIGGER_REQUEST,
    blocked_log_limit: int = 5,
    session_id: str | None = None,
) -> NavigationFilter | None:
    """Install a landing-page filter on *page* before its first navigation.

    Returns ``None`` without touching the page when *optimize* is off.
    *optimize* is ``True`` or a preset name; an explicit *table* overrides the
    preset's table.
    """
    preset = preset_name(optimize)
    if preset is None:
        return None

    nav_filter = NavigationFilter(
        table or build_rule_table(get_preset(preset)),
        detector,
        page_url=lambda: page.url,
        trigger=trigger,
        blocked_log_limit=blocked_log_limit,
        session_id=session_id,
    )

    if trigger == TRIGGER_NAVIGATION:

        def _on_frame_navigated(frame: "Frame") -> None:
            if frame == page.main_frame:
                nav_filter.observe_page_url(frame.url)

        page.on("framenavigated", _on_frame_navigated)

    await page.route("**/*", nav_filter.handle_route)
    logger.info(
        "Landing page request filter on (preset=%s, trigger=%s)",
        preset,
        trigger,
        extra={"session_id": nav_filter.session.id},
    )
    return nav_filter
