"""Tests for Sentry configuration: scrubbing, sampling and initialisation."""

import os
from typing import Any
from unittest.mock import patch

import pytest

from core.sentry_config import (
    _before_send,
    _before_send_transaction,
    _traces_sampler,
    init_sentry,
)


class TestBeforeSend:
    """Personal data is removed before events leave the process."""

    def test_scrubs_user_identity_but_keeps_id(self) -> None:
        event: dict[str, Any] = {
            "user": {
                "id": "42",
                "email": "citizen@example.com",
                "username": "casey",
                "ip_address": "10.0.0.8",
            }
        }
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result is not None
        user = result["user"]  # type: ignore[typeddict-item]
        assert user == {"id": "42", "ip_address": "{{auto}}"}

    def test_filters_cookies_and_bearer_token(self) -> None:
        event: dict[str, Any] = {
            "request": {
                "url": "/api/issues/",
                "cookies": {"session": "secret"},
                "headers": {
                    "Authorization": "Bearer abc",
                    "Content-Type": "application/json",
                },
            }
        }
        result = _before_send(event, {})  # type: ignore[arg-type]
        request = result["request"]  # type: ignore[index, typeddict-item]
        assert "cookies" not in request
        assert request["headers"]["Authorization"] == "[Filtered]"
        assert request["headers"]["Content-Type"] == "application/json"

    def test_filters_refresh_token_in_body(self) -> None:
        event: dict[str, Any] = {
            "request": {
                "url": "/api/auth/refresh",
                "data": {"refresh_token": "opaque-value"},
            }
        }
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result["request"]["data"] == {  # type: ignore[index, typeddict-item]
            "refresh_token": "[Filtered]"
        }

    def test_passes_plain_events_through(self) -> None:
        event: dict[str, Any] = {"message": "boom"}
        assert _before_send(event, {}) == {"message": "boom"}  # type: ignore[arg-type]


class TestBeforeSendTransaction:
    @pytest.mark.parametrize("name", ["/api/health", "GET /health", "health_check"])
    def test_drops_health_checks(self, name: str) -> None:
        event: dict[str, Any] = {"transaction": name}
        assert _before_send_transaction(event, {}) is None  # type: ignore[arg-type]

    def test_keeps_other_transactions(self) -> None:
        event: dict[str, Any] = {"transaction": "/api/issues/"}
        assert _before_send_transaction(event, {}) is not None  # type: ignore[arg-type]


class TestTracesSampler:
    """Sampling favours auth and steward/admin routes."""

    @pytest.mark.parametrize(
        "path,rate",
        [
            ("/api/health", 0.0),
            ("/api/auth/login", 0.5),
            ("/api/stewards/me/issues", 0.5),
            ("/api/zones/1/stats", 0.5),
            ("/api/issues/", 0.2),
        ],
    )
    def test_rates_by_path(self, path: str, rate: float) -> None:
        assert _traces_sampler({"asgi_scope": {"path": path}}) == rate

    def test_follows_sampled_parent(self) -> None:
        context = {"parent_sampled": True, "asgi_scope": {"path": "/api/issues/"}}
        assert _traces_sampler(context) == 1.0

    def test_missing_scope_uses_default(self) -> None:
        assert _traces_sampler({}) == 0.2


class TestInitSentry:
    def test_without_dsn_does_nothing(self) -> None:
        with patch("sentry_sdk.init") as mock_init:
            with patch.dict(os.environ, {}, clear=False):
                os.environ.pop("SENTRY_DSN", None)
                init_sentry()
        mock_init.assert_not_called()

    def test_with_dsn_reads_environment(self) -> None:
        env = {
            "SENTRY_DSN": "https://key@o0.ingest.sentry.io/0",
            "ENVIRONMENT": "production",
            "SENTRY_RELEASE": "2.0.1",
        }
        with patch("sentry_sdk.init") as mock_init:
            with patch.dict(os.environ, env):
                init_sentry()
        kwargs = mock_init.call_args.kwargs
        assert kwargs["dsn"] == env["SENTRY_DSN"]
        assert kwargs["environment"] == "production"
        assert kwargs["release"] == "2.0.1"
        assert kwargs["send_default_pii"] is False
