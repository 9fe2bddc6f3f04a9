"""Stale-while-revalidate refresh of the task tree."""

from .refresh import RefreshController, RefreshState, Trigger

__all__ = [
    "RefreshController",
    "RefreshState",
    "Trigger",
]
