"""API Route modules."""

from . import health, pages, realtime

__all__ = ["health", "pages", "realtime"]
