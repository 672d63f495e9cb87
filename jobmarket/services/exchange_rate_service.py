"""Exchange rates for salary comparison via Frankfurter (ECB data)."""

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

import httpx

from jobmarket.config import get_settings
from jobmarket.exceptions import ExternalAPIError

logger = logging.getLogger(__name__)

# (target, source) -> (rate, fetched_at); rate = units of source per one target
_rate_cache: dict[tuple[str, str], tuple[float, datetime]] = {}


def get_cached_rate(target: str, source: str) -> float | None:
    """Cached rate if present and younger than the configured TTL."""
    entry = _rate_cache.get((target, source))
    if entry is None:
        return None
    rate, cached_at = entry
    ttl = timedelta(minutes=get_settings().exchange_rate_cache_minutes)
    if datetime.now() - cached_at < ttl:
        return rate
    return None


def cache_rates(target: str, rates: dict[str, float]) -> None:
    """Store freshly fetched rates for `target`."""
    now = datetime.now()
    for source, rate in rates.items():
        if source != target:
            _rate_cache[(target, source)] = (rate, now)


def fetch_rates(target: str, sources: list[str]) -> dict[str, float]:
    """
    Fetch latest rates from `target` to each source currency in one call.

    Raises ExternalAPIError on transport failure, non-2xx status, or a
    malformed body.
    """
    settings = get_settings()
    try:
        response = httpx.get(
            f"{settings.exchange_rate_api_url}/latest",
            params={"from": target, "to": ",".join(sources)},
            timeout=settings.http_timeout_seconds,
        )
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        raise ExternalAPIError(
            "rate request failed",
            api_name="frankfurter",
            status_code=e.response.status_code,
            response_body=e.response.text,
        ) from e
    except (httpx.HTTPError, ValueError) as e:
        raise ExternalAPIError(str(e) or "rate request failed", api_name="frankfurter") from e

    rates = data.get("rates") if isinstance(data, dict) else None
    if not isinstance(rates, dict):
        raise ExternalAPIError(f"no rates in response: {data}", api_name="frankfurter")
    try:
        return {str(code).upper(): float(rate) for code, rate in rates.items() if rate}
    except (TypeError, ValueError) as e:
        raise ExternalAPIError(f"bad rate in response: {rates}", api_name="frankfurter") from e


def rates_for(target: str, sources: Iterable[str]) -> dict[str, float]:
    """
    Rate table for comparing salaries in `target`.

    The target itself is always 1.0. Cached rates are reused; the rest are
    fetched in one request. If the rate source fails, each missing currency
    falls back to 1.0, so those records compare unconverted but the query
    still runs.
    """
    target = target.upper()
    rates: dict[str, float] = {target: 1.0}
    missing: list[str] = []

    for source in sorted({s.upper() for s in sources if s}):
        if source == target:
            continue
        cached = get_cached_rate(target, source)
        if cached is not None:
            rates[source] = cached
        else:
            missing.append(source)

    if not missing:
        return rates

    try:
        fetched = fetch_rates(target, missing)
    except ExternalAPIError as e:
        logger.warning("Exchange rates unavailable for %s -> %s: %s", target, missing, e)
        fetched = {}
    else:
        cache_rates(target, fetched)

    for source in missing:
        if source in fetched:
            rates[source] = fetched[source]
        else:
            logger.warning("No %s -> %s rate, comparing at 1.0", target, source)
            rates[source] = 1.0
    return rates


def clear_cache() -> None:
    """Clear the rate cache."""
    _rate_cache.clear()
