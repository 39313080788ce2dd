"""
TariffPilot Boundary

The single place where raw snapshots from runners and collaborators are
validated, de-aliased and turned into immutable domain objects.

Usage:
    from tariffpilot.boundary import state_from_dict

    state = state_from_dict(json.loads(raw))
"""
from __future__ import annotations

from .adapter import (
    case_from_dict,
    cases_from_list,
    current_state_from_dict,
    essential_character_analysis_from_dict,
    issue_from_dict,
    profile_from_dict,
    state_from_dict,
)

__all__ = [
    "case_from_dict",
    "cases_from_list",
    "current_state_from_dict",
    "essential_character_analysis_from_dict",
    "issue_from_dict",
    "profile_from_dict",
    "state_from_dict",
]
