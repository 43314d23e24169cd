"""Pydantic schemas validating status composition input."""

from .status import PollCreate, StatusCreate

__all__ = ["PollCreate", "StatusCreate"]
