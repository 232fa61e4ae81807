"""Data models for module definitions and subscriber records."""

from modstore.models.options import ActionOptions, ModuleOptions, action_handler, parse_module_options
from modstore.models.records import ActionRecord, MutationRecord

__all__ = [
    "ActionOptions",
    "ActionRecord",
    "ModuleOptions",
    "MutationRecord",
    "action_handler",
    "parse_module_options",
]
