"""
Session issuing and resolution on top of the TTL cache.

A session lives exactly session_ttl seconds from creation; reads never
extend it, and there is no logout. Unknown and expired tokens are reported
the same way.
"""

import secrets
from typing import Optional

from pydantic import ValidationError as SchemaError

from ..cache.ttl_cache import TTLCache
from ..models.employee import Session
from ..utils.exceptions import MissingToken, SessionExpired
from ..utils.logger import get_logger

logger = get_logger(__name__)

SESSION_KEY_PREFIX = "session_"
SESSION_TTL_SECONDS = 3600


def new_token() -> str:
    """Opaque, unguessable token (256 bits of randomness)"""
    return secrets.token_urlsafe(32)


class SessionStore:
    def __init__(self, cache: TTLCache, ttl_seconds: int = SESSION_TTL_SECONDS):
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(token: str) -> str:
        return f"{SESSION_KEY_PREFIX}{token}"

    def create_session(self, payload: Session) -> str:
        token = new_token()
        self.cache.put(self._key(token), payload.model_dump_json(), self.ttl_seconds)
        logger.info("Session created", code=payload.code, role=payload.role)
        return token

    def resolve_session(self, token: Optional[str]) -> Session:
        if not token or not str(token).strip():
            raise MissingToken()
        raw = self.cache.get(self._key(str(token).strip()))
        if raw is None:
            raise SessionExpired()
        try:
            return Session.model_validate_json(raw)
        except SchemaError:
            # Corrupt entry: treat like any other dead session
            logger.warning("Discarding unreadable session entry")
            self.cache.remove(self._key(str(token).strip()))
            raise SessionExpired()
