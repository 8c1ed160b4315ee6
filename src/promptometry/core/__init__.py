"""Core infrastructure: event store, correlation, pattern and scoring pipeline."""

from promptometry.core.database import EventDatabase
from promptometry.core.settings import settings

__all__ = [
    "EventDatabase",
    "settings",
]
