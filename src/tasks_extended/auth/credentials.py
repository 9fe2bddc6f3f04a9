from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence, Tuple

from google.oauth2.credentials import Credentials

from ..utils.log_sanitizer import sanitize_token

TOKEN_URI = "https://oauth2.googleapis.com/token"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Credential:
    """
    An authorized session with the task provider.
    Args:
        access_token: Bearer token for API calls.
        refresh_token: Long-lived token used for silent renewal.
        expiry: When the access token stops being valid (UTC).
        scopes: Scopes granted to the token.
    """
    access_token: str
    refresh_token: Optional[str] = None
    expiry: Optional[datetime] = None
    scopes: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.access_token:
            raise ValueError("Credential requires an access token")
        if self.expiry is not None:
            object.__setattr__(self, 'expiry', _as_utc(self.expiry))
        object.__setattr__(self, 'scopes', tuple(self.scopes))

    def is_expired(self, skew_seconds: float = 0, now: Optional[datetime] = None) -> bool:
        """True when the access token is expired or expires within ``skew_seconds``."""
        if self.expiry is None:
            return False
        now = _as_utc(now) if now else datetime.now(timezone.utc)
        return now + timedelta(seconds=skew_seconds) >= self.expiry

    @classmethod
    def from_google_credentials(
            cls,
            creds: Credentials,
            fallback_refresh_token: Optional[str] = None
    ) -> "Credential":
        """Create a Credential from google-auth OAuth2 credentials."""
        return cls(
            access_token=creds.token,
            refresh_token=creds.refresh_token or fallback_refresh_token,
            expiry=creds.expiry,
            scopes=tuple(creds.scopes or ()),
        )

    def to_google_credentials(
            self,
            client_id: str,
            client_secret: str,
            scopes: Optional[Sequence[str]] = None,
            token_uri: str = TOKEN_URI
    ) -> Credentials:
        """Convert to google-auth credentials, which expect a naive UTC expiry."""
        expiry = self.expiry.replace(tzinfo=None) if self.expiry else None
        return Credentials(
            token=self.access_token,
            refresh_token=self.refresh_token,
            token_uri=token_uri,
            client_id=client_id,
            client_secret=client_secret,
            scopes=list(scopes or self.scopes) or None,
            expiry=expiry,
        )

    def __repr__(self):
        return (
            f"Credential(access_token={sanitize_token(self.access_token)!r}, "
            f"refresh_token={sanitize_token(self.refresh_token)!r}, expiry={self.expiry!r})"
        )
