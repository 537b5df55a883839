"""
Database base models and utilities.

Shared column helpers for the ORM models. The declarative Base itself lives
in core.database next to the engine.
"""

import uuid

from core.database import Base


def generate_uuid() -> str:
    """Primary key default for all tables: a random UUID4 string."""
    return str(uuid.uuid4())


__all__ = ["Base", "generate_uuid"]
