"""
Clock helpers.

Components that depend on "now" accept a ``Clock`` so tests can pin time.
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)
