"""SQLAlchemy declarative base and shared model utilities.

This module provides the declarative base class for the registry ORM models
and the millisecond-epoch clock used for every persisted timestamp.
"""

from __future__ import annotations

import time
from typing import Any

from sqlalchemy.orm import DeclarativeBase


def epoch_millis() -> int:
    """Return the current time as integer milliseconds since the epoch.

    Uses a named function instead of lambda for SQLAlchemy 2.0 compatibility.
    Ensures proper INSERT-time evaluation.
    """
    return time.time_ns() // 1_000_000


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models.

    All models in the application should inherit from this base class.
    It provides the declarative base functionality and type hints for SQLAlchemy 2.0.
    """

    # Type annotation for SQLAlchemy
    type_annotation_map: dict[type, Any] = {}
