"""Runtime settings for order placement, read from the environment.

Values are read on every call so that a changed environment (or a test's
monkeypatch) takes effect without re-importing the domain.
"""

import os

DEFAULT_ORDER_NUMBER_PREFIX = "ORD"
DEFAULT_PLACEMENT_MAX_ATTEMPTS = 3
DEFAULT_STOCK_CAS_MAX_ATTEMPTS = 5


def _positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be at least 1, got {value}")
    return value


def order_number_prefix() -> str:
    """Leading letters of every order number (``ORD`` by default)."""
    return os.getenv("ORDER_NUMBER_PREFIX", DEFAULT_ORDER_NUMBER_PREFIX)


def placement_max_attempts() -> int:
    """How many times a whole unit of work is retried after a concurrency conflict."""
    return _positive_int("ORDER_PLACEMENT_MAX_ATTEMPTS", DEFAULT_PLACEMENT_MAX_ATTEMPTS)


def stock_cas_max_attempts() -> int:
    """How many times one conditional stock or counter update is re-read and retried."""
    return _positive_int("STOCK_CAS_MAX_ATTEMPTS", DEFAULT_STOCK_CAS_MAX_ATTEMPTS)
