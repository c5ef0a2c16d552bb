"""Custom exceptions for the identity core"""

from typing import Optional


class IdentityError(Exception):
    """Base exception for the identity core"""
    pass


class AuthError(IdentityError):
    """Authentication or session failure shown to the user"""
    pass


class InvalidCredentials(AuthError):
    """Code/password pair does not match exactly one active employee"""

    def __init__(self, message: str = "Invalid login details or the user is not active."):
        super().__init__(message)


class MissingToken(AuthError):
    """No session token was presented"""

    def __init__(self, message: str = "Invalid session. Please log in again."):
        super().__init__(message)


class SessionExpired(AuthError):
    """Session token is unknown or its TTL has elapsed"""

    def __init__(self, message: str = "Session expired. Please log in again."):
        super().__init__(message)


class ValidationError(AuthError):
    """Malformed input to a password change"""
    pass


class WrongPassword(AuthError):
    """Supplied old password does not match the stored one"""

    def __init__(self, message: str = "The old password is incorrect."):
        super().__init__(message)


class RecordNotFound(AuthError):
    """No credential record exists for the session's code"""

    def __init__(self, message: str = "Your account was not found in the system."):
        super().__init__(message)


class PermissionDenied(AuthError):
    """Session role is not allowed to perform the operation"""
    pass


class StoreError(IdentityError):
    """Record store read/write failure"""

    def __init__(self, message: str, table: Optional[str] = None):
        self.table = table
        super().__init__(message)


class LockTimeoutError(IdentityError):
    """A named lock could not be acquired in time"""

    def __init__(self, key: str, timeout_seconds: float):
        self.key = key
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Could not acquire lock {key} within {timeout_seconds}s")


class IdConflictError(IdentityError):
    """A freshly minted identifier already exists more than once"""

    def __init__(self, identifier: str, table: str, occurrences: int):
        self.identifier = identifier
        self.table = table
        self.occurrences = occurrences
        super().__init__(
            f"Identifier {identifier} appears {occurrences} times in table {table}"
        )


class PeerAppError(IdentityError):
    """Peer application rejected or failed a handshake call"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ConfigError(IdentityError):
    """Configuration error"""
    pass
