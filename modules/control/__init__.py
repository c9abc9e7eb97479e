"""Debouncing and event routing."""
from .debouncer import HoldDebouncer, DebouncerConfig
from .dispatcher import EventDispatcher

__all__ = [
    "HoldDebouncer",
    "DebouncerConfig",
    "EventDispatcher",
]
