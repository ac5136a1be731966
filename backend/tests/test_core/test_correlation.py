"""Tests for correlation IDs in context, exceptions, logs and responses."""

import re

import pytest

from core.correlation import (
    correlation_id_var,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from core.logging_config import correlation_filter
from models.exceptions import (
    BusinessRuleException,
    DomainException,
    IssueNotFoundException,
    NotFoundException,
    PermissionDeniedException,
    RateLimitExceededException,
)


class TestGenerateCorrelationId:
    """Tests for generate_correlation_id."""

    def test_returns_8_lowercase_hex_characters(self) -> None:
        assert re.match(r"^[0-9a-f]{8}$", generate_correlation_id())

    def test_generates_unique_ids(self) -> None:
        ids = {generate_correlation_id() for _ in range(500)}
        assert len(ids) == 500


class TestCorrelationContext:
    """Tests for the request-scoped correlation ID."""

    def setup_method(self) -> None:
        correlation_id_var.set("")

    def test_empty_outside_a_request(self) -> None:
        assert get_correlation_id() == ""

    def test_set_and_get(self) -> None:
        set_correlation_id("req00001")
        assert get_correlation_id() == "req00001"

    def test_log_filter_injects_id(self) -> None:
        """Log records carry the current ID, or '-' when none is bound."""
        record: dict = {"extra": {}}
        assert correlation_filter(record) is True  # type: ignore[arg-type]
        assert record["extra"]["correlation_id"] == "-"

        set_correlation_id("log00001")
        correlation_filter(record)  # type: ignore[arg-type]
        assert record["extra"]["correlation_id"] == "log00001"


class TestDomainExceptionCorrelationId:
    """Domain exceptions share the request's correlation ID."""

    def setup_method(self) -> None:
        set_correlation_id("")

    def test_uses_context_id(self) -> None:
        set_correlation_id("context1")
        assert DomainException("boom").correlation_id == "context1"

    def test_generates_id_without_context(self) -> None:
        exc = DomainException("boom")
        assert re.match(r"^[0-9a-f]{8}$", exc.correlation_id)

    def test_explicit_id_wins(self) -> None:
        set_correlation_id("context1")
        exc = DomainException("boom", correlation_id="explicit")
        assert exc.correlation_id == "explicit"

    @pytest.mark.parametrize(
        "exception",
        [
            NotFoundException("missing"),
            PermissionDeniedException("nope"),
            BusinessRuleException("rule"),
            IssueNotFoundException(7),
        ],
    )
    def test_subclasses_inherit_behaviour(self, exception: DomainException) -> None:
        assert len(exception.correlation_id) == 8
        assert str(exception) == exception.message

    def test_issue_not_found_message(self) -> None:
        assert "7" in IssueNotFoundException(7).message

    def test_rate_limit_carries_retry_after(self) -> None:
        exc = RateLimitExceededException(retry_after=42)
        assert exc.retry_after == 42


class TestCorrelationOverHttp:
    """The middleware echoes or generates X-Correlation-ID."""

    def test_echoes_incoming_header(self, client) -> None:
        response = client.get("/api/health", headers={"X-Correlation-ID": "abc12345"})
        assert response.status_code == 200
        assert response.headers["X-Correlation-ID"] == "abc12345"

    def test_generates_header_when_missing(self, client) -> None:
        response = client.get("/api/health")
        assert re.match(r"^[0-9a-f]{8}$", response.headers["X-Correlation-ID"])
        assert "X-Response-Time" in response.headers

    def test_error_body_includes_correlation_id(self, client) -> None:
        response = client.get(
            "/api/issues/9999", headers={"X-Correlation-ID": "err00001"}
        )
        assert response.status_code == 404
        assert response.json()["correlation_id"] == "err00001"
