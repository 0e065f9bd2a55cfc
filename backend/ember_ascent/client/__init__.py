"""Ember Ascent - API client helpers."""
from ember_ascent.client.dashboard import (
    DashboardClient,
    DashboardLoader,
    DashboardView,
    SliceState,
    SliceStatus,
)

__all__ = [
    "DashboardClient",
    "DashboardLoader",
    "DashboardView",
    "SliceState",
    "SliceStatus",
]
