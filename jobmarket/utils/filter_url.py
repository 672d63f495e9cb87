"""Compact, shareable encoding of filter conditions for URLs."""

import json
import logging
from typing import Any
from urllib.parse import quote, unquote

from jobmarket.services.filter_model import (
    FilterCondition,
    load_conditions,
    normalize_raw_condition,
)

logger = logging.getLogger(__name__)

# Short URL keys -> condition keys
_KEYS = {
    "i": "id",
    "f": "field",
    "l": "fieldLabel",
    "o": "operator",
    "v": "value",
    "p": "salaryPeriod",
    "c": "salaryCurrency",
}
_SHORT = {long: short for short, long in _KEYS.items()}


def serialize_conditions(conditions: list[FilterCondition]) -> str:
    """Percent-encoded JSON list of short-keyed conditions; "" for no conditions."""
    if not conditions:
        return ""
    compact = [
        {_SHORT[key]: value for key, value in condition.to_dict().items()}
        for condition in conditions
    ]
    return quote(json.dumps(compact, separators=(",", ":")), safe="")


def _expand(entry: Any) -> Any:
    if not isinstance(entry, dict):
        return entry
    return normalize_raw_condition(
        {_KEYS.get(key, key): value for key, value in entry.items()}
    )


def deserialize_conditions(param: str | None) -> list[FilterCondition]:
    """
    Decode a `filters` URL parameter.

    Never raises: malformed input yields no conditions, and individual
    entries that fail validation are dropped.
    """
    if not param:
        return []
    try:
        data = json.loads(unquote(param))
    except ValueError as e:
        logger.warning("Ignoring undecodable filters parameter: %s", e)
        return []
    if not isinstance(data, list):
        logger.warning("Ignoring filters parameter that is not a list")
        return []
    return load_conditions([_expand(entry) for entry in data])
