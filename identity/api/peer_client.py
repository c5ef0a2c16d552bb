"""Client used by a peer application to redeem handshake tokens over HTTP"""

from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import requests

from ..models.employee import Session
from ..utils.config import PeerSettings
from ..utils.exceptions import PeerAppError
from ..utils.logger import get_logger

logger = get_logger(__name__)

VERIFY_ACTION = "verifyHandshakeToken"


class HandshakePeerClient:
    """
    Talks to the issuing application's JSON action endpoint.

    The endpoint accepts {"action": "verifyHandshakeToken", "token": "..."}
    and answers {"user": {...} | null} or {"error": "..."}. Calls are never
    retried: a handshake token is single-use, so a repeat could only fail.
    """

    def __init__(self, endpoint_url: str, timeout_seconds: float = 15, session: Optional[requests.Session] = None):
        self.endpoint_url = endpoint_url
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, peer: PeerSettings, endpoint_url: str) -> "HandshakePeerClient":
        return cls(endpoint_url, timeout_seconds=peer.timeout_seconds)

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.session.post(self.endpoint_url, json=payload, timeout=self.timeout_seconds)
        except requests.RequestException as e:
            logger.error("Peer request failed", action=payload.get("action"), error=str(e))
            raise PeerAppError(f"Peer application unreachable: {e}")

        logger.info("Received response from peer application", status_code=response.status_code)

        try:
            result = response.json()
        except ValueError:
            raise PeerAppError("Peer application returned a non-JSON body", status_code=response.status_code)

        if not isinstance(result, dict):
            raise PeerAppError("Peer application returned an unexpected body", status_code=response.status_code)
        if "error" in result:
            raise PeerAppError(str(result["error"]), status_code=response.status_code)
        if response.status_code >= 400:
            raise PeerAppError(f"Peer application answered HTTP {response.status_code}", status_code=response.status_code)
        return result

    def verify_handshake(self, handshake_token: str) -> Optional[Session]:
        """Redeem a handshake token; None when it was unknown, expired or already used"""
        result = self._post({"action": VERIFY_ACTION, "token": handshake_token})
        user = result.get("user")
        if not user:
            return None
        return Session(**user)


def handoff_url(app_url: str, handshake_token: str) -> str:
    """Peer app URL carrying the handshake token as ?handshakeToken=..."""
    parts = urlparse(app_url)
    query = dict(parse_qsl(parts.query))
    query["handshakeToken"] = handshake_token
    return urlunparse(parts._replace(query=urlencode(query)))
