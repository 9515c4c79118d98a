"""UTC timestamp helpers.

Every ``created_at``/``updated_at`` column and every in-memory row uses
``utc_now`` so timestamps compare consistently across record store backends.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)
