"""
Credential persistence across process restarts.

Stores are synchronous: saving or clearing completes before the caller
continues, so the session manager can order "persist, then publish" without
a suspension point in between.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union
import logging
import os
import tempfile

from google.oauth2.credentials import Credentials

from .credentials import Credential, TOKEN_URI

logger = logging.getLogger(__name__)


class CredentialStore(ABC):
    """Persists one opaque session credential."""

    @abstractmethod
    def load(self) -> Optional[Credential]:
        """Return the stored credential, or None when nothing usable is stored."""

    @abstractmethod
    def save(self, credential: Credential) -> None:
        """Persist ``credential``, replacing any previous one."""

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored credential. Clearing an empty store is not an error."""


class MemoryCredentialStore(CredentialStore):
    """Keeps the credential for the life of the process only."""

    def __init__(self, credential: Optional[Credential] = None):
        self._credential = credential

    def load(self) -> Optional[Credential]:
        return self._credential

    def save(self, credential: Credential) -> None:
        self._credential = credential

    def clear(self) -> None:
        self._credential = None


class FileCredentialStore(CredentialStore):
    """
    Stores the credential in a token file readable only by the user.

    The file uses google-auth's authorized-user JSON format, so it carries the
    OAuth client next to the tokens. A session without a refresh token cannot
    be renewed and loads as None.

    Writes go to a temporary file in the same directory which then replaces
    the token file, so a crash never leaves a half-written token behind.
    """

    def __init__(
            self,
            token_path: Union[str, Path],
            client_id: str,
            client_secret: str,
            token_uri: str = TOKEN_URI
    ):
        self.token_path = Path(token_path).expanduser()
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_uri = token_uri

    def load(self) -> Optional[Credential]:
        if not self.token_path.exists():
            return None

        try:
            creds = Credentials.from_authorized_user_file(str(self.token_path))
            credential = Credential.from_google_credentials(creds)
            logger.info("Loaded credentials from token file")
            return credential
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Failed to load existing token: %s", e)
            return None

    def save(self, credential: Credential) -> None:
        creds = credential.to_google_credentials(self.client_id, self.client_secret, token_uri=self.token_uri)
        directory = self.token_path.parent
        os.makedirs(directory, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(prefix=".token-", suffix=".json", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as token:
                token.write(creds.to_json())
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.token_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        logger.info("Credentials saved to token file")

    def clear(self) -> None:
        try:
            self.token_path.unlink()
            logger.info("Token file removed")
        except FileNotFoundError:
            pass
