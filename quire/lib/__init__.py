from quire.lib.fractional_index import midpoint, spaced_keys, validate_index
from quire.lib.hooks import hooks, action, filter, add_action, add_filter, do_action, apply_filters

__all__ = [
    "midpoint",
    "spaced_keys",
    "validate_index",
    "hooks",
    "action",
    "filter",
    "add_action",
    "add_filter",
    "do_action",
    "apply_filters",
]
