"""Tests for exchange rate fetching, caching and fallback."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import httpx
import pytest

from jobmarket.exceptions import ExternalAPIError
from jobmarket.services import exchange_rate_service


def rate_response(rates: dict[str, float]) -> MagicMock:
    response = MagicMock()
    response.json.return_value = {"amount": 1.0, "base": "EUR", "rates": rates}
    response.raise_for_status.return_value = None
    return response


class TestFetchRates:
    def test_single_request_for_all_sources(self):
        with patch.object(
            exchange_rate_service.httpx, "get", return_value=rate_response({"USD": 1.1, "GBP": 0.85})
        ) as mock_get:
            rates = exchange_rate_service.fetch_rates("EUR", ["USD", "GBP"])

        assert rates == {"USD": 1.1, "GBP": 0.85}
        mock_get.assert_called_once()
        assert mock_get.call_args.kwargs["params"] == {"from": "EUR", "to": "USD,GBP"}
        assert mock_get.call_args.kwargs["timeout"] > 0

    def test_http_error_status(self):
        request = httpx.Request("GET", "https://api.frankfurter.app/latest")
        response = httpx.Response(500, request=request, text="boom")
        with patch.object(exchange_rate_service.httpx, "get", return_value=response):
            with pytest.raises(ExternalAPIError) as exc_info:
                exchange_rate_service.fetch_rates("EUR", ["USD"])
        assert exc_info.value.response_status == 500

    def test_malformed_body(self):
        response = MagicMock()
        response.json.return_value = {"message": "not found"}
        with patch.object(exchange_rate_service.httpx, "get", return_value=response):
            with pytest.raises(ExternalAPIError):
                exchange_rate_service.fetch_rates("EUR", ["USD"])

    def test_non_numeric_rate(self):
        with patch.object(
            exchange_rate_service.httpx, "get", return_value=rate_response({"USD": "n/a"})
        ):
            with pytest.raises(ExternalAPIError):
                exchange_rate_service.fetch_rates("EUR", ["USD"])


class TestRatesFor:
    def test_target_only_needs_no_request(self):
        with patch.object(exchange_rate_service, "fetch_rates") as fetch:
            assert exchange_rate_service.rates_for("eur", ["EUR"]) == {"EUR": 1.0}
        fetch.assert_not_called()

    def test_unavailable_source_falls_back_to_one(self):
        # The test fixture makes every real request fail
        assert exchange_rate_service.rates_for("EUR", ["USD"]) == {"EUR": 1.0, "USD": 1.0}

    def test_fallback_is_not_cached(self):
        exchange_rate_service.rates_for("EUR", ["USD"])
        assert exchange_rate_service.get_cached_rate("EUR", "USD") is None

    def test_currency_missing_from_response_falls_back(self):
        with patch.object(
            exchange_rate_service.httpx, "get", return_value=rate_response({"USD": 1.1})
        ):
            rates = exchange_rate_service.rates_for("EUR", ["USD", "GBP"])
        assert rates == {"EUR": 1.0, "GBP": 1.0, "USD": 1.1}

    def test_cached_rates_are_reused(self):
        with patch.object(
            exchange_rate_service.httpx, "get", return_value=rate_response({"USD": 1.1})
        ) as mock_get:
            exchange_rate_service.rates_for("EUR", ["USD"])
            exchange_rate_service.rates_for("EUR", ["USD"])
        assert mock_get.call_count == 1

    def test_stale_cache_entry_is_ignored(self):
        exchange_rate_service._rate_cache[("EUR", "USD")] = (
            1.1,
            datetime.now() - timedelta(days=1),
        )
        assert exchange_rate_service.get_cached_rate("EUR", "USD") is None

    def test_non_numeric_rate_falls_back_to_one(self):
        with patch.object(
            exchange_rate_service.httpx, "get", return_value=rate_response({"USD": "n/a"})
        ):
            rates = exchange_rate_service.rates_for("EUR", ["USD"])
        assert rates == {"EUR": 1.0, "USD": 1.0}
