"""Landing-page phase tracking for the navigation filter.

State machine:
- OPTIMIZING (initial): requests are checked against the rule table
- OPTIMIZING → PASSTHROUGH: the page has left the landing page
- PASSTHROUGH is terminal; navigating back to the landing page does not
  re-enable filtering

``PhaseMachine`` only knows about the transition. What triggers it is decided
by the caller (an intercepted request's page URL, or a navigation event),
using ``LandingDetector`` to judge page URLs.
"""

from __future__ import annotations

import re
from enum import Enum

DEFAULT_TARGET_PATTERN = r"/np/search"

# URLs a fresh page reports before its first navigation commits
_BLANK_URLS = frozenset({"", "about:blank"})


class FilterPhase(str, Enum):
    OPTIMIZING = "optimizing"
    PASSTHROUGH = "passthrough"


class PhaseMachine:
    """One-shot OPTIMIZING → PASSTHROUGH transition."""

    def __init__(self) -> None:
        self._phase = FilterPhase.OPTIMIZING

    @property
    def phase(self) -> FilterPhase:
        return self._phase

    @property
    def optimizing(self) -> bool:
        return self._phase is FilterPhase.OPTIMIZING

    def advance(self) -> bool:
        """Move to PASSTHROUGH. Returns ``True`` only for the call that did it."""
        if self._phase is FilterPhase.PASSTHROUGH:
            return False
        self._phase = FilterPhase.PASSTHROUGH
        return True


class LandingDetector:
    """Decides whether a page URL is still on the landing page.

    Patterns are regular expressions matched with ``re.search``. A page has
    left the landing page when its URL matches *target_pattern*, or, if a
    *landing_pattern* is configured, when it no longer matches that pattern.
    Blank URLs always count as landing.
    """

    def __init__(
        self,
        target_pattern: str = DEFAULT_TARGET_PATTERN,
        landing_pattern: str | None = None,
    ) -> None:
        self._target = re.compile(target_pattern)
        self._landing = re.compile(landing_pattern) if landing_pattern else None

    def is_landing(self, page_url: str | None) -> bool:
        url = (page_url or "").strip()
        if url in _BLANK_URLS:
            return True
        if self._target.search(url):
            return False
        if self._landing is not None:
            return self._landing.search(url) is not None
        return True

    def has_left_landing(self, page_url: str | None) -> bool:
        return not self.is_landing(page_url)
