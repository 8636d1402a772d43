"""Entry point: python -m retail_session

Loads settings and the proxy pool, logs the pool status and prints the
available proxies as JSON.
"""

from __future__ import annotations

import json
import logging
import sys

from retail_session.config.settings import SessionSettings
from retail_session.logging_config import configure_logging
from retail_session.proxy.registry import ProxyRegistry

logger = logging.getLogger(__name__)


def main() -> int:
    settings = SessionSettings()
    configure_logging(settings.log_level, json_output=settings.log_json)

    registry = ProxyRegistry.from_settings(settings)
    registry.log_status()
    logger.info(
        "Proxy mode %s, optimization %s",
        settings.proxy_mode,
        settings.optimization_preset or "off",
    )

    json.dump(registry.list_available(), sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
