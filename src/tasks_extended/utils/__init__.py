"""Shared helpers: time formatting, log sanitizing, observers."""
