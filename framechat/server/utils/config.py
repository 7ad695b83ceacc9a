"""
Server configuration module.

This module handles server-side configuration settings.
"""

from framechat.common.constants import (
    DEFAULT_SERVER_HOST, DEFAULT_PORT, FRAME_WIDTH, FRAMING_FIXED,
    POLL_INTERVAL, SHUTDOWN_GRACE, WRITE_TIMEOUT, ACCOUNTS_FILE, LOG_DIR
)
from framechat.common.framing import create_codec


class ServerConfig:
    """Server configuration class."""

    def __init__(self, host: str = DEFAULT_SERVER_HOST, port: int = DEFAULT_PORT,
                 accounts_path: str = ACCOUNTS_FILE, framing: str = FRAMING_FIXED,
                 frame_width: int = FRAME_WIDTH):
        self.host = host
        self.port = port
        self.accounts_path = accounts_path

        # Wire settings
        self.framing = framing
        self.frame_width = frame_width

        # Logging configuration
        self.logs_dir = LOG_DIR
        self.log_to_file = False

        # Router settings
        self.poll_interval = POLL_INTERVAL
        self.shutdown_grace = SHUTDOWN_GRACE
        self.write_timeout = WRITE_TIMEOUT

        # Read operator commands from stdin
        self.operator_console = True

    def create_codec(self):
        """Build the framing codec for this deployment."""
        return create_codec(self.framing, self.frame_width)

    def get_connection_info(self):
        """Get connection information."""
        return {
            'host': self.host,
            'port': self.port
        }

    def get_wire_settings(self):
        """Get framing settings."""
        return {
            'framing': self.framing,
            'frame_width': self.frame_width
        }

