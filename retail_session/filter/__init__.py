"""Landing-page request filtering: rule tables, phase tracking, route handler."""

from retail_session.filter.navigation import (
    FilterSession,
    NavigationFilter,
    install_navigation_filter,
)
from retail_session.filter.phase import FilterPhase, LandingDetector, PhaseMachine
from retail_session.filter.rules import (
    Decision,
    InterceptedRequest,
    ResourceKind,
    Rule,
    RuleTable,
    Verdict,
)
from retail_session.filter.tables import (
    DEFAULT_PRESET,
    PRESETS,
    BlockRules,
    build_rule_table,
    get_preset,
    load_block_rules,
    preset_name,
)

__all__ = [
    "BlockRules",
    "DEFAULT_PRESET",
    "Decision",
    "FilterPhase",
    "FilterSession",
    "InterceptedRequest",
    "LandingDetector",
    "NavigationFilter",
    "PRESETS",
    "PhaseMachine",
    "ResourceKind",
    "Rule",
    "RuleTable",
    "Verdict",
    "build_rule_table",
    "get_preset",
    "install_navigation_filter",
    "load_block_rules",
    "preset_name",
]
