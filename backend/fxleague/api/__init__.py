"""API routers."""

from fxleague.api import admin, tournaments

__all__ = ["admin", "tournaments"]
