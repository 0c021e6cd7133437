"""Bearer token persistence and expiry checks."""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import jwt


logger = logging.getLogger(__name__)

EXPIRY_BUFFER = timedelta(minutes=5)


def decode_token(token: str) -> Optional[dict]:
    """Read a JWT payload without verifying its signature.

    Returns None for anything that is not a JWT; plain opaque tokens are
    allowed by the booking API.
    """
    try:
        return jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
            algorithms=["HS256", "RS256", "ES256"],
        )
    except jwt.InvalidTokenError:
        return None


def get_token_expiry(token: str) -> Optional[datetime]:
    """Get the expiry time of a token, or None when it has no exp claim."""
    if not token or not token.strip():
        return None

    payload = decode_token(token.strip())
    if not payload or payload.get("exp") is None:
        return None

    try:
        return datetime.fromtimestamp(float(payload["exp"]), tz=timezone.utc)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring unreadable exp claim: {payload['exp']!r}")
        return None


def is_token_expired(token: str, now: Optional[datetime] = None) -> bool:
    """Check whether a token is missing or within five minutes of expiring.

    Tokens that are not JWTs, or carry no exp claim, are considered valid.
    """
    if not token or not token.strip():
        return True

    expiry = get_token_expiry(token)
    if expiry is None:
        return False

    now = now or datetime.now(timezone.utc)
    return now >= expiry - EXPIRY_BUFFER


class TokenStore:
    """Stores the bearer token in a single file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return ""

    def save(self, token: str):
        token = token.strip()
        if not token:
            self.clear()
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token + "\n", encoding="utf-8")
        self.path.chmod(0o600)
        logger.debug(f"Saved token to {self.path}")

    def clear(self):
        if self.path.exists():
            self.path.unlink()
            logger.debug(f"Removed token file {self.path}")


def resolve_token(explicit: Optional[str], store: TokenStore) -> str:
    """Pick the token to use: an explicit value wins over the stored one."""
    if explicit and explicit.strip():
        return explicit.strip()
    return store.load()
