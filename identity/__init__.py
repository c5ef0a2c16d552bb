"""Identity core: sessions, credentials, handshakes and sequential IDs"""

__version__ = "1.0.0"
