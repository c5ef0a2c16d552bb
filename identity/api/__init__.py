"""Outbound clients"""

from .peer_client import HandshakePeerClient, handoff_url

__all__ = ["HandshakePeerClient", "handoff_url"]
