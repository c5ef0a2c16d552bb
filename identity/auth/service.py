"""
Authentication service layer.

Entry points used by request handlers and peer applications:
- login / get_session for the session lifecycle
- change_password for the logged-in employee
- generate_handshake_token / verify_handshake_token for cross-app vouching
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..api.peer_client import handoff_url
from ..cache.ttl_cache import TTLCache
from ..cache.ttl_cache import cache as default_cache
from ..ids.generator import IdentifierGenerator
from ..models.employee import Session
from ..store.record_store import RecordStore
from ..utils.config import Settings, config_manager
from ..utils.exceptions import ConfigError, PermissionDenied
from .credentials import CredentialValidator
from .handshake import HandshakeBridge
from .sessions import SessionStore


class AuthService:
    def __init__(self, settings: Settings, store: RecordStore, cache: TTLCache):
        self.settings = settings
        self.store = store
        self.cache = cache
        self.credentials = CredentialValidator(
            store,
            table_name=settings.store.employees_table,
            min_password_length=settings.auth.min_password_length,
            password_scheme=settings.auth.password_scheme,
        )
        self.sessions = SessionStore(cache, ttl_seconds=settings.auth.session_ttl_seconds)
        self.handshakes = HandshakeBridge(
            self.sessions, cache, ttl_seconds=settings.auth.handshake_ttl_seconds
        )
        self.ids = IdentifierGenerator(
            store,
            employees_table=settings.store.employees_table,
            placeholder_partition=settings.ids.placeholder_partition,
            date_format=settings.ids.date_format,
            sequence_width=settings.ids.sequence_width,
            employee_prefix=settings.ids.employee_prefix,
            timezone=settings.ids.timezone,
            locks_dir=settings.store.locks_dir,
            lock_timeout_seconds=settings.store.lock_timeout_seconds,
        )

    def login(self, code: Optional[str], password: Optional[str]) -> Dict[str, Any]:
        """Authenticate and open a session: {"token": ..., "user": {...}}"""
        user = self.credentials.authenticate(code, password)
        token = self.sessions.create_session(user)
        return {"token": token, "user": user.model_dump()}

    def get_session(self, token: Optional[str]) -> Session:
        return self.sessions.resolve_session(token)

    def require_role(self, token: Optional[str], *roles: str) -> Session:
        user = self.get_session(token)
        if roles and user.role not in roles:
            raise PermissionDenied(f"Requires one of the roles: {', '.join(roles)}")
        return user

    def change_password(self, token: Optional[str], old_password: Optional[str], new_password: Optional[str]) -> Dict[str, Any]:
        user = self.get_session(token)
        return self.credentials.change_password(user, old_password, new_password)

    def generate_handshake_token(self, token: Optional[str]) -> Dict[str, str]:
        return {"handshakeToken": self.handshakes.issue_handshake(token)}

    def verify_handshake_token(self, handshake_token: Optional[str]) -> Optional[Session]:
        return self.handshakes.redeem_handshake(handshake_token)

    def peer_handoff_url(self, token: Optional[str]) -> str:
        """Contract app URL carrying a fresh handshake token for this session"""
        app_url = self.settings.peer.contract_app_url
        if not app_url:
            raise ConfigError("peer.contract_app_url is not set")
        return handoff_url(app_url, self.handshakes.issue_handshake(token))


def build_auth_service(settings: Optional[Settings] = None, cache: Optional[TTLCache] = None) -> AuthService:
    """Wire an AuthService from settings, sharing the process-wide cache by default"""
    settings = settings or config_manager.settings
    store = RecordStore(settings.store.tables_dir)
    return AuthService(settings, store, cache or default_cache)
