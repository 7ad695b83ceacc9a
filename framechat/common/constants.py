"""
Shared constants for the framechat broadcast chat service.

This module contains all constants used across client and server components.
"""

# Network Configuration
DEFAULT_HOST = '127.0.0.1'
DEFAULT_SERVER_HOST = '127.0.0.1'
DEFAULT_PORT = 6000

# Framing
FRAME_WIDTH = 64  # bytes per frame, must match on both ends
FRAME_HEADER_SIZE = 2  # bytes for the length header of length-prefixed framing
FRAMING_FIXED = 'fixed'
FRAMING_LENGTH_PREFIXED = 'length-prefixed'

# Timing
POLL_INTERVAL = 0.1  # seconds between idle router cycles
SHUTDOWN_GRACE = 1.0  # seconds between the shutdown notice and exit
WRITE_TIMEOUT = 5.0  # seconds a single outbound write may wait for the peer

# Identity
OPERATOR_ID = 0  # reserved sender id for server operator input
FIRST_USER_ID = 1
GUEST_PREFIX = 'Guest'
SERVER_NAME = '[server]'

# Storage
ACCOUNTS_FILE = 'accounts.txt'
RECORD_SEPARATOR = ';'
FIELD_SEPARATOR = '='

# Logging
LOG_DIR = 'logs'
SERVER_LOG_FILE = 'server.log'

# Exit codes
EXIT_OK = 0
EXIT_FAILURE = 1

# Client
QUIT_COMMAND = ':quit'
CANCEL_INPUT = ':cancel'

# Command verbs
COMMAND_SIGIL = '/'


class Commands:
    LOGIN = '/login'
    CREATE = '/create'
    WHISPER = '/whisper'
    LISTALL = '/listall'
    PING = '/ping'
    ABOUTME = '/aboutme'

    # Operator only
    STOP = '/stop'
