"""
Client configuration module.

This module handles client-side configuration settings.
"""

from framechat.common.constants import DEFAULT_HOST, DEFAULT_PORT, FRAME_WIDTH, FRAMING_FIXED
from framechat.common.framing import create_codec


class ClientConfig:
    """Client configuration class."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT,
                 framing: str = FRAMING_FIXED, frame_width: int = FRAME_WIDTH):
        self.host = host
        self.port = port

        # Wire settings, must match the server
        self.framing = framing
        self.frame_width = frame_width

        # Ask for credentials right after connecting
        self.ask_login = True

    def create_codec(self):
        """Build the framing codec for this connection."""
        return create_codec(self.framing, self.frame_width)

    def get_connection_info(self):
        """Get connection information."""
        return {
            'host': self.host,
            'port': self.port
        }
