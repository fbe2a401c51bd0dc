# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2026 nisq-analyzer

"""
Common utilities.

This module provides small, shared utility functions:
- Time utilities (UTC timestamps)
- Identifier coercion (UUIDs)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable
from uuid import UUID


#: Type alias for injectable wall clocks.
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """
    Return the current UTC time as a timezone-aware datetime.

    Returns
    -------
    datetime
        Current time with ``tzinfo=timezone.utc``.
    """
    return datetime.now(timezone.utc)


def isoformat(ts: datetime | None) -> str | None:
    """
    Format a timestamp as ISO 8601 with a ``Z`` suffix for UTC.

    Parameters
    ----------
    ts : datetime or None
        Timestamp to format.

    Returns
    -------
    str or None
        ISO 8601 string (e.g. "2024-01-15T10:30:00.123456Z"), or None.
    """
    if ts is None:
        return None
    return ts.isoformat().replace("+00:00", "Z")


def as_uuid(value: UUID | str) -> UUID:
    """
    Coerce a value to :class:`uuid.UUID`.

    Parameters
    ----------
    value : UUID or str
        UUID instance or its string form.

    Returns
    -------
    UUID
        Parsed identifier.

    Raises
    ------
    ValueError
        If the string is not a valid UUID.
    """
    if isinstance(value, UUID):
        return value
    return UUID(str(value).strip())
