"""
Correlation ID generation and request-scoped storage.

The same short ID appears in log lines, Sentry events and error responses,
so a citizen reporting a failure can quote it.
"""

import uuid
from contextvars import ContextVar

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    """
    Generate a short correlation ID.

    Returns:
        8-character hexadecimal string (e.g. "4f2a9c01").
    """
    return uuid.uuid4().hex[:8]


def get_correlation_id() -> str:
    """
    Get the correlation ID bound to the current context.

    Returns:
        The correlation ID, or an empty string outside a request.
    """
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Bind a correlation ID to the current context.

    Args:
        correlation_id: ID taken from the X-Correlation-ID header or generated.
    """
    correlation_id_var.set(correlation_id)
