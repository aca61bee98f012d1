"""
Token Service - JWT access/refresh tokens and password-reset tokens.

Access tokens are short-lived and carry only the user id.
Refresh tokens are long-lived, signed with a DIFFERENT secret and tagged
with type="refresh", so a leaked access token can never be replayed
against the refresh endpoint (and vice versa).

Reset tokens are random opaque strings. Only their sha256 digest is ever
stored; a presented token is hashed and compared, never decrypted.
"""

import hashlib
import secrets
from datetime import datetime, timedelta
from typing import NamedTuple, Optional

from jose import JWTError, jwt

from startupteam.core.config import Settings, get_settings
from startupteam.core.exceptions import InvalidToken

REFRESH_TOKEN_TYPE = "refresh"
RESET_TOKEN_BYTES = 32


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


class TokenService:

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def issue_access_token(self, user_id: str) -> str:
        """Create a short-lived access token embedding the user id only."""
        expire = datetime.utcnow() + timedelta(minutes=self.settings.jwt_access_expire_minutes)
        claims = {"sub": str(user_id), "exp": expire}
        return jwt.encode(claims, self.settings.jwt_secret_key, algorithm=self.settings.jwt_algorithm)

    def issue_refresh_token(self, user_id: str) -> str:
        """Create a long-lived refresh token tagged with type=refresh."""
        expire = datetime.utcnow() + timedelta(days=self.settings.jwt_refresh_expire_days)
        claims = {"sub": str(user_id), "type": REFRESH_TOKEN_TYPE, "exp": expire}
        return jwt.encode(claims, self.settings.jwt_refresh_secret_key, algorithm=self.settings.jwt_algorithm)

    def issue_token_pair(self, user_id: str) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(user_id),
            refresh_token=self.issue_refresh_token(user_id),
        )

    def verify_access_token(self, token: str) -> dict:
        """
        Decode an access token.

        Raises InvalidToken for any failure. A payload carrying a type tag
        is rejected so refresh tokens cannot authenticate requests.
        """
        payload = self._decode(token, self.settings.jwt_secret_key)
        if "type" in payload:
            raise InvalidToken("Invalid or expired token")
        return payload

    def verify_refresh_token(self, token: str) -> dict:
        """
        Decode a refresh token.

        Signature mismatch, expiry, malformed payload and a missing
        type=refresh tag all raise the same InvalidToken.
        """
        payload = self._decode(token, self.settings.jwt_refresh_secret_key)
        if payload.get("type") != REFRESH_TOKEN_TYPE:
            raise InvalidToken("Invalid refresh token")
        return payload

    def _decode(self, token: str, key: str) -> dict:
        try:
            payload = jwt.decode(token, key, algorithms=[self.settings.jwt_algorithm])
        except JWTError:
            raise InvalidToken("Invalid or expired token")
        if not isinstance(payload, dict) or not payload.get("sub"):
            raise InvalidToken("Invalid or expired token")
        return payload


def generate_reset_token() -> str:
    """Random opaque reset token: 32 bytes, hex encoded (64 chars)."""
    return secrets.token_hex(RESET_TOKEN_BYTES)


def hash_token(token: str) -> str:
    """One-way sha256 digest of a reset token (the only form we persist)."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# Singleton instance
_token_service: TokenService = None


def get_token_service() -> TokenService:
    """Get or create the token service (singleton pattern)"""
    global _token_service
    if _token_service is None:
        _token_service = TokenService()
    return _token_service
