"""Proxy registry with none / sequential / random / pinned-id selection.

Proxies are loaded once from a JSON or YAML document with a ``proxies`` list.
Records with ``active: false`` are dropped at load time. Selection never
raises: an empty pool, the ``"none"`` mode or an unknown proxy id all yield
``None`` and the session connects directly.

The sequential cursor is the only mutable state. It is shared by every caller
of one registry and guarded by a lock so concurrent sessions walk the pool in
strict round-robin order.
"""

from __future__ import annotations

import json
import logging
import random
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any, Union

import yaml
from pydantic import ValidationError

from retail_session.errors import ProxyConfigError
from retail_session.proxy.types import ProxyDescriptor, ProxyRecord

if TYPE_CHECKING:
    from retail_session.config.settings import SessionSettings

logger = logging.getLogger(__name__)

ProxySource = Union[str, Path, Mapping[str, Any], None]

MODE_NONE = "none"
MODE_SEQUENTIAL = "sequential"
MODE_RANDOM = "random"


class ProxyRegistry:
    """Holds the active proxy pool and hands out one descriptor per session."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._proxies: tuple[ProxyDescriptor, ...] = ()
        self._cursor: int = 0
        self._lock = threading.Lock()
        self._random = rng or random.Random()

    @classmethod
    def from_settings(cls, settings: "SessionSettings") -> "ProxyRegistry":
        registry = cls()
        registry.load(settings.proxy_config_path)
        return registry

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, source: ProxySource) -> int:
        """Replace the pool with the active proxies found in *source*.

        *source* may be a path to a ``.json``/``.yaml`` file, an already-parsed
        mapping, or ``None``. Any failure leaves an empty pool. Returns the
        number of active proxies loaded.
        """
        try:
            proxies = self._read_source(source)
        except ProxyConfigError as exc:
            logger.error("Failed to load proxy configuration: %s", exc.message, extra=exc.details)
            proxies = []

        with self._lock:
            self._proxies = tuple(p for p in proxies if p.active)
            self._cursor = 0

        logger.info("Loaded %d active proxies", len(self._proxies))
        return len(self._proxies)

    def _read_source(self, source: ProxySource) -> list[ProxyDescriptor]:
        if source is None:
            logger.warning("No proxy configuration given; running without proxies")
            return []

        if isinstance(source, Mapping):
            return _parse_document(source)

        if not isinstance(source, (str, Path)):
            raise ProxyConfigError(
                f"unsupported proxy configuration source: {type(source).__name__}"
            )

        path = Path(source)
        if not path.exists():
            logger.warning(
                "Proxy configuration not found at %s; running without proxies", path
            )
            return []

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ProxyConfigError(f"cannot read {path}: {exc}", path=str(path)) from exc

        try:
            if path.suffix.lower() == ".json":
                document = json.loads(text)
            else:
                document = yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise ProxyConfigError(f"cannot parse {path}: {exc}", path=str(path)) from exc

        return _parse_document(document)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(self, mode: str | None = MODE_NONE) -> ProxyDescriptor | None:
        """Pick a proxy for one session.

        ``"none"`` and an empty pool return ``None``. ``"sequential"`` walks the
        pool round-robin, ``"random"`` picks uniformly, and any other string is
        looked up as a proxy id.
        """
        mode = (mode or MODE_NONE).strip()
        if mode in ("", MODE_NONE):
            return None

        with self._lock:
            proxies = self._proxies
            if not proxies:
                return None

            if mode == MODE_SEQUENTIAL:
                proxy = proxies[self._cursor]
                self._cursor = (self._cursor + 1) % len(proxies)
                return proxy

        if mode == MODE_RANDOM:
            return self._random.choice(proxies)

        for proxy in proxies:
            if proxy.id == mode:
                return proxy

        logger.warning("Proxy '%s' not found; running without proxy", mode)
        return None

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def list_available(self) -> list[dict[str, str]]:
        """Return ``{id, name, server}`` for every active proxy."""
        return [p.summary() for p in self._proxies]

    def log_status(self) -> None:
        """Log one line per proxy in the pool."""
        logger.info("Proxy pool: %d active", len(self._proxies))
        for index, proxy in enumerate(self._proxies, start=1):
            logger.info("  %d. %s (%s): %s", index, proxy.name, proxy.id, proxy.server)

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._proxies)


def _parse_document(document: Any) -> list[ProxyDescriptor]:
    """Turn a parsed configuration document into descriptors.

    Invalid records are skipped; a document without a ``proxies`` list is a
    configuration error.
    """
    if not isinstance(document, Mapping):
        raise ProxyConfigError("proxy configuration must be a mapping")

    records = document.get("proxies")
    if not isinstance(records, list):
        raise ProxyConfigError("proxy configuration has no 'proxies' list")

    descriptors: list[ProxyDescriptor] = []
    for index, raw in enumerate(records):
        try:
            record = ProxyRecord.model_validate(raw)
        except ValidationError as exc:
            logger.error("Invalid proxy record #%d: %s; skipping", index, exc.errors()[0]["msg"])
            continue
        descriptors.append(record.to_descriptor())
    return descriptors
