"""
Credential checks against the Employees table.

Passwords are stored as plain text by default, matching the existing
employee sheet. With password_scheme="bcrypt" new passwords are written as
bcrypt hashes and rows still holding plain text keep working until changed.
"""

from typing import Dict, List, Optional, Tuple

import bcrypt

from ..models.employee import CredentialRecord, Session
from ..store.record_store import RecordStore
from ..utils.exceptions import (
    InvalidCredentials,
    RecordNotFound,
    StoreError,
    ValidationError,
    WrongPassword,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password using bcrypt"""
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def password_matches(supplied: str, stored: str) -> bool:
    """Compare trimmed values; bcrypt hashes are verified, anything else compared as text"""
    supplied = supplied.strip()
    stored = stored.strip()
    if stored.startswith(BCRYPT_PREFIXES):
        try:
            return bcrypt.checkpw(supplied.encode('utf-8'), stored.encode('utf-8'))
        except ValueError:
            return False
    return supplied == stored


class CredentialValidator:
    def __init__(
        self,
        store: RecordStore,
        table_name: str = "Employees",
        min_password_length: int = 6,
        password_scheme: str = "plain",
    ):
        self.store = store
        self.table_name = table_name
        self.min_password_length = min_password_length
        self.password_scheme = password_scheme

    def _records(self) -> List[CredentialRecord]:
        return [CredentialRecord(**row) for row in self.store.table(self.table_name).read_all()]

    def authenticate(self, code: Optional[str], password: Optional[str]) -> Session:
        code = str(code if code is not None else "").strip()
        password = str(password if password is not None else "")

        matches = [
            record for record in self._records()
            if record.code.strip() == code
            and record.active
            and password_matches(password, record.password)
        ]
        if len(matches) != 1:
            if len(matches) > 1:
                logger.warning("Ambiguous credentials: several active rows match", code=code)
            raise InvalidCredentials()

        session = matches[0].to_session()
        logger.info("User authenticated", code=session.code, role=session.role)
        return session

    def _locate(self, code: str) -> Tuple[int, Dict]:
        rows = self.store.table(self.table_name).read_all()
        for index, row in enumerate(rows):
            if str(row.get("Code", "")).strip() == code.strip():
                return index, row
        raise RecordNotFound()

    def change_password(self, session: Session, old_password: Optional[str], new_password: Optional[str]) -> Dict:
        if not old_password or not new_password:
            raise ValidationError("Both the old and the new password are required.")
        # Stored values are compared trimmed, so all-whitespace would mean an empty password
        if not new_password.strip():
            raise ValidationError("The new password cannot be blank.")
        if len(new_password) < self.min_password_length:
            raise ValidationError(
                f"The new password must be at least {self.min_password_length} characters."
            )
        if self.password_scheme == "bcrypt" and len(new_password.strip().encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValidationError(f"The new password must be at most {BCRYPT_MAX_BYTES} bytes.")

        table = self.store.table(self.table_name)
        if "Password" not in table.headers or "Code" not in table.headers:
            raise StoreError(
                "Employees table is missing the Code or Password column", table=self.table_name
            )

        row_index, row = self._locate(session.code)
        if not password_matches(old_password, CredentialRecord(**row).password):
            raise WrongPassword()

        value = hash_password(new_password.strip()) if self.password_scheme == "bcrypt" else new_password
        table.update_cell(row_index, "Password", value)

        logger.info("Password changed", code=session.code)
        return {"success": True, "message": "Password changed successfully."}
