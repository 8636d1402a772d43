"""Browser session driver."""

from retail_session.browser.session import (
    CHROMIUM_ARGS,
    BrowsingSession,
    SessionDriver,
    launch_browser,
)

__all__ = [
    "CHROMIUM_ARGS",
    "BrowsingSession",
    "SessionDriver",
    "launch_browser",
]
