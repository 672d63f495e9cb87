"""Pure computation helpers shared by services (no database access)."""

from jobmarket.calculations.filter_eval import apply_all, get_field_value, matches
from jobmarket.calculations.salary import normalize_salary

__all__ = [
    "apply_all",
    "get_field_value",
    "matches",
    "normalize_salary",
]
