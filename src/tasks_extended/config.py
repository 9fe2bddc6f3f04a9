"""
Application configuration.

Values come from environment variables; the OAuth client can alternatively be
read from a Google ``credentials.json`` file (Desktop application type).
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple
import json
import logging
import os

from .exceptions import ConfigurationError
from .tasks.constants import TASKS_SCOPE, DEFAULT_TASK_LIST_ID, DEFAULT_MAX_RESULTS, MAX_RESULTS_LIMIT

logger = logging.getLogger(__name__)

ENV_PREFIX = "TASKS_EXTENDED_"
DEFAULT_TOKEN_PATH = os.path.join("~", ".tasks_extended", "token.json")


def load_client_secrets(credentials_path: str) -> Tuple[str, str]:
    """
    Read client id and secret from a Google client secrets file.

    Args:
        credentials_path: Path to credentials.json

    Returns:
        Tuple of (client_id, client_secret)

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    path = Path(credentials_path).expanduser()
    if not path.exists():
        raise ConfigurationError(
            f"Credentials file not found at {path}. "
            "Please download it from Google Cloud Console."
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            creds_data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Could not read credentials file {path}: {e}")

    # Handle both installed app and web app credential formats
    if 'installed' in creds_data:
        client_info = creds_data['installed']
    elif 'web' in creds_data:
        client_info = creds_data['web']
    else:
        raise ConfigurationError("Invalid credentials.json format - missing 'installed' or 'web' section")

    try:
        return client_info['client_id'], client_info['client_secret']
    except KeyError as e:
        raise ConfigurationError(f"credentials.json is missing {e}")


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}")


def _float_setting(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class AppConfig:
    """
    Settings for one running client.
    Args:
        client_id: OAuth2 client id.
        client_secret: OAuth2 client secret.
        scopes: Scopes requested at sign-in.
        token_path: Where the session credential is persisted.
        task_list_id: Task list to show.
        max_results: Page size used when listing tasks.
        focus_debounce: Seconds during which repeated focus refreshes are ignored.
    """
    client_id: str
    client_secret: str
    scopes: Tuple[str, ...] = (TASKS_SCOPE,)
    token_path: str = DEFAULT_TOKEN_PATH
    task_list_id: str = DEFAULT_TASK_LIST_ID
    max_results: int = DEFAULT_MAX_RESULTS
    focus_debounce: float = 0.0

    def __post_init__(self):
        if not self.client_id or not self.client_secret:
            raise ConfigurationError("An OAuth client id and secret are required")
        if self.max_results < 1 or self.max_results > MAX_RESULTS_LIMIT:
            raise ConfigurationError(f"max_results must be between 1 and {MAX_RESULTS_LIMIT}")
        if self.focus_debounce < 0:
            raise ConfigurationError("focus_debounce cannot be negative")
        if not self.scopes:
            raise ConfigurationError("At least one scope is required")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """
        Build the configuration from ``TASKS_EXTENDED_*`` environment variables.

        Raises:
            ConfigurationError: If required values are missing or invalid
        """
        environ = os.environ if environ is None else environ

        client_id = environ.get(ENV_PREFIX + "CLIENT_ID")
        client_secret = environ.get(ENV_PREFIX + "CLIENT_SECRET")
        credentials_path = environ.get(ENV_PREFIX + "CREDENTIALS_PATH")
        if (not client_id or not client_secret) and credentials_path:
            logger.info("Reading OAuth client from credentials file")
            client_id, client_secret = load_client_secrets(credentials_path)

        scopes = tuple((environ.get(ENV_PREFIX + "SCOPES") or TASKS_SCOPE).split())

        return cls(
            client_id=client_id,
            client_secret=client_secret,
            scopes=scopes,
            token_path=environ.get(ENV_PREFIX + "TOKEN_PATH") or DEFAULT_TOKEN_PATH,
            task_list_id=environ.get(ENV_PREFIX + "TASK_LIST") or DEFAULT_TASK_LIST_ID,
            max_results=_int_setting(environ, "MAX_RESULTS", DEFAULT_MAX_RESULTS),
            focus_debounce=_float_setting(environ, "FOCUS_DEBOUNCE", 0.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Settings without the client secret, for diagnostics."""
        return {
            'client_id': self.client_id,
            'scopes': list(self.scopes),
            'token_path': self.token_path,
            'task_list_id': self.task_list_id,
            'max_results': self.max_results,
            'focus_debounce': self.focus_debounce,
        }
