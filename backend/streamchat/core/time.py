"""Timestamps for the database.

Columns hold naive datetimes that are always UTC, so comparisons never mix
aware and naive values.
"""

from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)
