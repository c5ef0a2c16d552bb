"""Authentication and identity components"""

from .credentials import CredentialValidator
from .handshake import HandshakeBridge
from .service import AuthService, build_auth_service
from .sessions import SessionStore

__all__ = [
    "AuthService",
    "CredentialValidator",
    "HandshakeBridge",
    "SessionStore",
    "build_auth_service",
]
