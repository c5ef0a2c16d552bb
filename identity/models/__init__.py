from .employee import CredentialRecord, HandshakeRecord, Session

__all__ = ["CredentialRecord", "HandshakeRecord", "Session"]
