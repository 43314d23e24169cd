"""Declarative base for the ORM models.

Callers create their own engine and ``Session``; every service takes the
session it should work in.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import statusgraph.models  # noqa: E402,F401
