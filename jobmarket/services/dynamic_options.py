"""Filter dropdown options derived from a sample of live jobs."""

import logging
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from jobmarket.calculations.filter_eval import get_field_value
from jobmarket.config import get_settings
from jobmarket.services.filter_model import FieldOption
from jobmarket.services.job_service import fetch_jobs_sample

logger = logging.getLogger(__name__)

EXPERIENCE_LEVEL_LABELS = {
    "0-2": "0-2 years (Entry Level)",
    "2-5": "2-5 years (Mid Level)",
    "5-10": "5-10 years (Senior)",
    "10+": "10+ years (Expert)",
}


@dataclass(frozen=True)
class DynamicOptions:
    """Immutable snapshot of observed option values, one tuple per select field."""

    cities: tuple[FieldOption, ...] = ()
    employment_types: tuple[FieldOption, ...] = ()
    experience_levels: tuple[FieldOption, ...] = ()
    work_arrangements: tuple[FieldOption, ...] = ()
    sources: tuple[FieldOption, ...] = ()
    industries: tuple[FieldOption, ...] = ()


def _values(value: Any) -> list[str]:
    """String values of a scalar or list attribute (city objects reduce to their name)."""
    items = value if isinstance(value, (list, tuple)) else [value]
    found = []
    for item in items:
        if isinstance(item, str) and item:
            found.append(item)
        elif isinstance(item, dict) and item.get("city"):
            found.append(item["city"])
    return found


def _top_values(jobs: list[Any], field: str, limit: int) -> list[str]:
    """Most frequent values (ties alphabetical), returned in alphabetical order."""
    counts: Counter[str] = Counter()
    for job in jobs:
        counts.update(set(_values(get_field_value(job, field))))
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:limit]
    return sorted(value for value, _ in ranked)


def _options(
    values: Iterable[str], label: Callable[[str], str] = lambda value: value
) -> tuple[FieldOption, ...]:
    return tuple(FieldOption(value=value, label=label(value)) for value in values)


def generate_dynamic_options(jobs: Iterable[Any], limit: int | None = None) -> DynamicOptions:
    """Build the options snapshot from a job sample. Deterministic for a given sample."""
    if limit is None:
        limit = get_settings().filter_option_limit
    sample = list(jobs)

    return DynamicOptions(
        cities=_options(_top_values(sample, "cities_derived", limit)),
        employment_types=_options(_top_values(sample, "employment_type", limit)),
        experience_levels=_options(
            _top_values(sample, "ai_experience_level", limit),
            lambda level: EXPERIENCE_LEVEL_LABELS.get(level, level),
        ),
        work_arrangements=_options(_top_values(sample, "ai_work_arrangement", limit)),
        sources=_options(
            _top_values(sample, "source", limit), lambda source: source[:1].upper() + source[1:]
        ),
        industries=_options(_top_values(sample, "linkedin_org_industry", limit)),
    )


# Snapshot cache: replaced wholesale on refresh, never mutated
_options_cache: tuple[DynamicOptions, datetime] | None = None


def get_dynamic_options(db: Session) -> DynamicOptions:
    """Cached options snapshot, rebuilt from a fresh sample when stale."""
    global _options_cache
    settings = get_settings()

    if _options_cache is not None:
        options, built_at = _options_cache
        if datetime.now() - built_at < timedelta(minutes=settings.filter_option_cache_minutes):
            return options

    sample = fetch_jobs_sample(db, settings.filter_option_sample_size)
    options = generate_dynamic_options(sample, settings.filter_option_limit)
    _options_cache = (options, datetime.now())
    logger.info("Built filter options from %d sampled jobs", len(sample))
    return options


def clear_cache() -> None:
    """Drop the cached options snapshot."""
    global _options_cache
    _options_cache = None
