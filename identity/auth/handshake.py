"""
Single-use handshake tokens for vouching a user to a peer application.

Lifecycle of a token:
    Issued(used=false) --redeem--> Consumed(used=true) --redeem--> Consumed
    Issued/Consumed --TTL expiry or cache clear--> Gone

Redemption returns None rather than raising, so a peer cannot tell a
never-issued token from an expired or already consumed one.
"""

from typing import Optional

from pydantic import ValidationError as SchemaError

from ..cache.ttl_cache import TTLCache
from ..models.employee import HandshakeRecord, Session
from ..utils.logger import get_logger
from .sessions import SessionStore, new_token

logger = get_logger(__name__)

HANDSHAKE_KEY_PREFIX = "handshake_"
HANDSHAKE_TTL_SECONDS = 60


class HandshakeBridge:
    def __init__(
        self,
        sessions: SessionStore,
        cache: TTLCache,
        ttl_seconds: int = HANDSHAKE_TTL_SECONDS,
    ):
        self.sessions = sessions
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(token: str) -> str:
        return f"{HANDSHAKE_KEY_PREFIX}{token}"

    def issue_handshake(self, session_token: Optional[str]) -> str:
        """Mint a handshake token for the holder of a live session"""
        user = self.sessions.resolve_session(session_token)
        token = new_token()
        record = HandshakeRecord(user=user, used=False)
        self.cache.put(self._key(token), record.model_dump_json(), self.ttl_seconds)
        logger.info("Handshake token issued", code=user.code)
        return token

    def redeem_handshake(self, token: Optional[str]) -> Optional[Session]:
        """Consume a handshake token; only the first caller gets the session"""
        if not token or not str(token).strip():
            logger.info("Handshake verification failed: token missing")
            return None

        key = self._key(str(token).strip())
        raw = self.cache.get(key)
        if raw is None:
            logger.info("Handshake verification failed: token not found or expired")
            return None

        try:
            record = HandshakeRecord.model_validate_json(raw)
        except SchemaError:
            logger.warning("Discarding unreadable handshake entry")
            self.cache.remove(key)
            return None

        if record.used:
            logger.info("Handshake verification failed: token already used", code=record.user.code)
            self.cache.remove(key)
            return None

        consumed = record.model_copy(update={"used": True})
        if not self.cache.compare_and_set(key, raw, consumed.model_dump_json()):
            # Another redeemer flipped it (or it expired) between our read and write
            logger.info("Handshake verification failed: lost redemption race", code=record.user.code)
            return None

        logger.info("Handshake verification successful", code=record.user.code)
        return record.user
