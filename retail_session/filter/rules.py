"""Ordered allow/block rule evaluation for intercepted requests.

A ``RuleTable`` is an ordered list of ``Rule`` objects followed by a fixed
fallback decision. The first rule whose predicate matches decides the
request. Predicates are built from plain data (resource kinds, substrings,
file extensions) by the factory functions below, so tables can be tested and
extended without touching the evaluation code.

Evaluation never raises. A predicate that fails (for example on a URL that
cannot be split) is treated as not matching, so an ambiguous request falls
through to the fallback, which is ``ALLOW``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    """Request resource kinds as reported by the browser engine."""

    DOCUMENT = "document"
    SCRIPT = "script"
    STYLESHEET = "stylesheet"
    XHR = "xhr"
    FETCH = "fetch"
    IMAGE = "image"
    MEDIA = "media"
    FONT = "font"
    WEBSOCKET = "websocket"
    MANIFEST = "manifest"
    TEXTTRACK = "texttrack"
    EVENTSOURCE = "eventsource"
    PING = "ping"
    OTHER = "other"

    @classmethod
    def classify(cls, resource_type: str | None) -> "ResourceKind":
        """Map an engine resource type string to a kind; unknown → ``OTHER``."""
        try:
            return cls((resource_type or "").strip().lower())
        except ValueError:
            return cls.OTHER


class Decision(str, Enum):
    ALLOW = "allow"
    BLOCK = "block"


@dataclass(frozen=True)
class InterceptedRequest:
    """The parts of an outbound request the rules look at."""

    url: str
    kind: ResourceKind


@dataclass(frozen=True)
class Rule:
    name: str
    decision: Decision
    matches: Callable[[InterceptedRequest], bool]


@dataclass(frozen=True)
class Verdict:
    decision: Decision
    rule: str


FALLBACK_RULE = "fallback"


class RuleTable:
    """Ordered rule set with a fixed fallback decision."""

    def __init__(
        self,
        rules: Sequence[Rule],
        fallback: Decision = Decision.ALLOW,
    ) -> None:
        self._rules = tuple(rules)
        self._fallback = fallback

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    @property
    def fallback(self) -> Decision:
        return self._fallback

    def evaluate(self, request: InterceptedRequest) -> Verdict:
        """Return the verdict of the first matching rule, or the fallback."""
        for rule in self._rules:
            try:
                matched = rule.matches(request)
            except Exception:  # noqa: BLE001
                logger.debug(
                    "Rule %s failed on %s; treating as no match",
                    rule.name,
                    request.url[:80],
                    exc_info=True,
                )
                continue
            if matched:
                return Verdict(rule.decision, rule.name)
        return Verdict(self._fallback, FALLBACK_RULE)


# ---------------------------------------------------------------------------
# Rule factories
# ---------------------------------------------------------------------------


def kind_rule(name: str, kinds: Iterable[ResourceKind], decision: Decision) -> Rule:
    """Match requests whose resource kind is in *kinds*."""
    kind_set = frozenset(kinds)
    return Rule(name, decision, lambda request: request.kind in kind_set)


def substring_rule(
    name: str,
    substrings: Iterable[str],
    decision: Decision,
    *,
    kinds: Iterable[ResourceKind] | None = None,
) -> Rule:
    """Match requests whose URL contains any of *substrings*.

    When *kinds* is given the resource kind must also be one of them.
    """
    needles = tuple(s for s in substrings if s)
    kind_set = frozenset(kinds) if kinds is not None else None

    def matches(request: InterceptedRequest) -> bool:
        if kind_set is not None and request.kind not in kind_set:
            return False
        return any(needle in request.url for needle in needles)

    return Rule(name, decision, matches)


def extension_rule(name: str, extensions: Iterable[str], decision: Decision) -> Rule:
    """Match requests whose URL path ends with one of *extensions*.

    Matching is case-insensitive and ignores the query string and fragment.
    """
    suffixes = tuple("." + ext.lower().lstrip(".") for ext in extensions if ext)

    def matches(request: InterceptedRequest) -> bool:
        path = url_path(request.url)
        return bool(path) and path.lower().endswith(suffixes)

    return Rule(name, decision, matches)


def url_path(url: str) -> str:
    """Return the path component of *url*, or ``""`` if it cannot be split."""
    try:
        return urlsplit(url).path
    except ValueError:
        return ""
