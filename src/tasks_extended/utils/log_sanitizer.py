"""
Log sanitization utilities to keep secrets and personal data out of logs.

Access and refresh tokens are bearer secrets, and task titles and notes are
user content, so neither is ever logged verbatim.
"""

import re
from typing import Optional


def sanitize_token(token: Optional[str]) -> str:
    """
    Sanitize a bearer token for logging by showing only a short prefix and length.

    Args:
        token: Access or refresh token

    Returns:
        Sanitized token representation

    Example:
        "ya29.a0AfH6SMB..." -> "[token: ya29... (183 chars)]"
    """
    if not token:
        return "[no-token]"

    if len(token) <= 8:
        return f"[token: *** ({len(token)} chars)]"
    return f"[token: {token[:4]}... ({len(token)} chars)]"


def sanitize_title(title: Optional[str], max_preview_length: int = 20) -> str:
    """
    Sanitize a task title for logging.

    Args:
        title: Task title to sanitize
        max_preview_length: Maximum characters to show from the title

    Returns:
        Sanitized title representation
    """
    if not title:
        return "[empty-title]"

    # Strip anything that looks like an email address before previewing
    cleaned = re.sub(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b', '[EMAIL]', title)
    preview = cleaned[:max_preview_length]
    if len(cleaned) > max_preview_length:
        preview += "..."

    return f"'{preview}' ({len(title)} chars)"


def sanitize_notes(notes: Optional[str]) -> str:
    """Sanitize task notes for logging; only the length is kept."""
    if not notes:
        return "[no-notes]"
    return f"[notes] ({len(notes)} chars)"


def sanitize_for_logging(**kwargs) -> dict:
    """
    Sanitize multiple fields for logging in one call.

    Args:
        **kwargs: Fields to sanitize (access_token, refresh_token, title, notes, etc.)

    Returns:
        Dictionary with sanitized values
    """
    sanitized = {}

    for key, value in kwargs.items():
        if key in ('token', 'access_token', 'refresh_token'):
            sanitized[key] = sanitize_token(value)
        elif key == 'title':
            sanitized[key] = sanitize_title(value)
        elif key == 'notes':
            sanitized[key] = sanitize_notes(value)
        else:
            # Non-sensitive fields pass through unchanged
            sanitized[key] = value

    return sanitized
