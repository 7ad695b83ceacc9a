"""
Server logging module.

This module handles server-side logging functionality.
"""

import logging
from pathlib import Path

from framechat.common.constants import SERVER_LOG_FILE


class ServerLogger:
    """Server logging class."""

    def __init__(self, log_level: int = logging.INFO):
        # Set up main logger
        self.logger = logging.getLogger('framechat_server')
        self.logger.setLevel(log_level)

        # Remove existing handlers
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        # Create console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)

        # Create formatter
        self.formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        console_handler.setFormatter(self.formatter)

        # Add handler to logger
        self.logger.addHandler(console_handler)
        self.log_path = None

    def set_level(self, log_level: int):
        """Change the level of the logger and all its handlers."""
        self.logger.setLevel(log_level)
        for handler in self.logger.handlers:
            handler.setLevel(log_level)

    def enable_file_logging(self, logs_dir: str):
        """Also write log records to ``<logs_dir>/server.log``."""
        logs_path = Path(logs_dir)
        logs_path.mkdir(parents=True, exist_ok=True)
        self.log_path = logs_path / SERVER_LOG_FILE
        file_handler = logging.FileHandler(self.log_path, encoding='utf-8')
        file_handler.setLevel(self.logger.level)
        file_handler.setFormatter(self.formatter)
        self.logger.addHandler(file_handler)

    def info(self, message: str):
        """Log info message."""
        self.logger.info(message)

    def error(self, message: str):
        """Log error message."""
        self.logger.error(message)

    def warning(self, message: str):
        """Log warning message."""
        self.logger.warning(message)

    def debug(self, message: str):
        """Log debug message."""
        self.logger.debug(message)

    def log_connection(self, addr: tuple, uid: int):
        """Log client connection."""
        self.info(f"New connection from {addr}, assigned uid={uid}")

    def log_disconnect(self, username: str, uid: int, reason: str):
        """Log client removal."""
        self.info(f"User {username} (uid={uid}) disconnected: {reason}")

    def log_connection_closed(self, uid: int, reason: str):
        """Log the end of a connection's read side."""
        self.info(f"Closing connection with uid={uid}: {reason}")

    def log_login(self, username: str, uid: int, success: bool):
        """Log login attempt."""
        status = "logged in" if success else "failed to log in"
        self.info(f"uid={uid} {status} as '{username}'")

    def log_account_created(self, username: str, uid: int):
        """Log account creation."""
        self.info(f"Account '{username}' created by uid={uid}")

    def log_chat(self, username: str, uid: int, message: str, recipients: int):
        """Log chat message."""
        self.debug(f"Chat from {username} (uid={uid}) to {recipients} user(s): {message}")

    def log_whisper(self, from_username: str, from_uid: int, to_username: str, to_uid: int):
        """Log direct message."""
        self.info(f"Whisper from {from_username} (uid={from_uid}) to {to_username} (uid={to_uid})")

    def log_dropped_envelope(self, uid: int):
        """Log a message whose sender is no longer registered."""
        self.warning(f"Dropping message from unknown uid={uid}")

    def log_unknown_command(self, uid: int, command: str):
        """Log an unrecognized command verb."""
        self.warning(f"Unknown command from uid={uid}: {command!r}")

    def log_shutdown(self, users_count: int):
        """Log orderly shutdown."""
        self.info(f"Shutting down, notifying {users_count} user(s)")

    def log_error(self, operation: str, error: Exception):
        """Log error with operation context."""
        self.error(f"Error in {operation}: {error}")


# Global logger instance
logger = ServerLogger()
