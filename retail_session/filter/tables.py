"""Block rule tables, optimization presets, and the YAML override loader.

The tables are plain data held in a ``BlockRules`` model. ``build_rule_table``
turns them into the ordered ``RuleTable`` the navigation filter evaluates:

1. essential kinds              → allow
2. blocked kinds                → block
3. vendor substrings in the URL → block
4. CDN marker + CDN-blocked kind → block
5. image file extension         → block
   fallback                     → allow
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from retail_session.errors import BlockRulesError, UnknownPresetError
from retail_session.filter.rules import (
    Decision,
    ResourceKind,
    RuleTable,
    extension_rule,
    kind_rule,
    substring_rule,
)

logger = logging.getLogger(__name__)


ESSENTIAL_KINDS: list[ResourceKind] = [
    ResourceKind.DOCUMENT,
    ResourceKind.SCRIPT,
    ResourceKind.STYLESHEET,
    ResourceKind.XHR,
    ResourceKind.FETCH,
]

BLOCKED_KINDS: list[ResourceKind] = [
    ResourceKind.IMAGE,
    ResourceKind.MEDIA,
    ResourceKind.FONT,
    ResourceKind.WEBSOCKET,
    ResourceKind.MANIFEST,
]

VENDOR_PATTERNS: list[str] = [
    "banner",
    "promotion",
    "google-analytics",
    "googletagmanager",
    "facebook",
    "criteo",
    "doubleclick",
    "amazon-adsystem",
]

CDN_MARKERS: list[str] = ["cloudfront"]

IMAGE_EXTENSIONS: list[str] = ["jpg", "jpeg", "png", "gif", "webp", "svg", "ico"]

# Extra vendors and beacon paths blocked by the "maximum" preset
TRACKING_DOMAINS: list[str] = [
    "googleadservices.com",
    "googlesyndication.com",
    "adnxs.com",
    "adsrvr.org",
    "taboola.com",
    "outbrain.com",
    "scorecardresearch.com",
    "quantserve.com",
    "segment.com",
    "hotjar.com",
    "mixpanel.com",
    "amplitude.com",
    "newrelic.com",
    "sentry.io",
    "bugsnag.com",
    "branch.io",
    "appsflyer.com",
    "adjust.com",
    "kochava.com",
]

TRACKING_PATH_PATTERNS: list[str] = [
    "popup",
    "tracking",
    "analytics",
    "pixel",
    "beacon",
    "telemetry",
    "impression",
    "conversion",
    "retargeting",
    "remarketing",
]


class BlockRules(BaseModel):
    """Data behind a request rule table."""

    essential_kinds: list[ResourceKind] = ESSENTIAL_KINDS
    blocked_kinds: list[ResourceKind] = BLOCKED_KINDS
    vendor_patterns: list[str] = VENDOR_PATTERNS
    cdn_markers: list[str] = CDN_MARKERS
    cdn_blocked_kinds: list[ResourceKind] = [ResourceKind.IMAGE]
    image_extensions: list[str] = IMAGE_EXTENSIONS


DEFAULT_PRESET = "balanced"

PRESETS: dict[str, BlockRules] = {
    "minimal": BlockRules(
        blocked_kinds=[ResourceKind.MEDIA, ResourceKind.WEBSOCKET, ResourceKind.MANIFEST],
        cdn_markers=[],
        image_extensions=[],
    ),
    "balanced": BlockRules(),
    "maximum": BlockRules(
        vendor_patterns=VENDOR_PATTERNS + TRACKING_DOMAINS + TRACKING_PATH_PATTERNS,
    ),
}


def preset_name(optimize: bool | str | None) -> str | None:
    """Normalize an ``optimize`` flag to a preset name, or ``None`` when off.

    ``True`` selects the default preset. Raises ``UnknownPresetError`` for a
    name that is not in ``PRESETS``.
    """
    if optimize is None or optimize is False:
        return None
    if optimize is True:
        return DEFAULT_PRESET

    name = str(optimize).strip().lower()
    if name in ("", "off", "false", "none", "0"):
        return None
    if name in ("on", "true", "1"):
        return DEFAULT_PRESET
    if name not in PRESETS:
        raise UnknownPresetError(
            f"Unknown optimization preset '{optimize}'",
            known=sorted(PRESETS),
        )
    return name


def get_preset(name: str) -> BlockRules:
    if name not in PRESETS:
        raise UnknownPresetError(f"Unknown optimization preset '{name}'", known=sorted(PRESETS))
    return PRESETS[name].model_copy(deep=True)


def build_rule_table(rules: BlockRules | None = None) -> RuleTable:
    """Build the ordered rule table for *rules* (default: ``balanced``)."""
    rules = rules or get_preset(DEFAULT_PRESET)
    return RuleTable(
        [
            kind_rule("essential-kind", rules.essential_kinds, Decision.ALLOW),
            kind_rule("blocked-kind", rules.blocked_kinds, Decision.BLOCK),
            substring_rule("vendor-pattern", rules.vendor_patterns, Decision.BLOCK),
            substring_rule(
                "cdn-image",
                rules.cdn_markers,
                Decision.BLOCK,
                kinds=rules.cdn_blocked_kinds,
            ),
            extension_rule("image-extension", rules.image_extensions, Decision.BLOCK),
        ],
        fallback=Decision.ALLOW,
    )


def load_block_rules(yaml_path: str | Path | None, preset: str = DEFAULT_PRESET) -> BlockRules:
    """Load table overrides from YAML on top of *preset*.

    Keys present in the file replace the preset's lists. A missing or invalid
    file returns the preset unchanged.
    """
    base = get_preset(preset)
    if yaml_path is None:
        return base

    path = Path(yaml_path)
    if not path.exists():
        logger.warning("Block rules file not found at %s; using '%s' preset", path, preset)
        return base

    try:
        return _parse_block_rules(path, base)
    except BlockRulesError as exc:
        logger.error("%s; using '%s' preset", exc.message, preset)
        return base


def _parse_block_rules(path: Path, base: BlockRules) -> BlockRules:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise BlockRulesError(f"Failed to read block rules at {path}: {exc}") from exc

    if raw is None:
        return base
    if not isinstance(raw, dict):
        raise BlockRulesError(f"Block rules at {path} must be a mapping")

    unknown = set(raw) - set(BlockRules.model_fields)
    if unknown:
        logger.warning("Ignoring unknown block rule keys: %s", ", ".join(sorted(unknown)))

    merged = base.model_dump()
    merged.update({k: v for k, v in raw.items() if k in BlockRules.model_fields})
    try:
        rules = BlockRules.model_validate(merged)
    except ValidationError as exc:
        raise BlockRulesError(f"Invalid block rules at {path}: {exc.errors()[0]['msg']}") from exc

    logger.info("Loaded block rule overrides from %s", path)
    return rules
