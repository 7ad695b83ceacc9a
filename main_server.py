#!/usr/bin/env python3
"""
framechat Server - Main Entry Point

Usage:
    python main_server.py

Optional arguments:
    --host HOST           Bind address (default: 127.0.0.1)
    --port PORT           TCP port (default: 6000)
    --accounts FILE       Account file (default: accounts.txt)
    --framing MODE        fixed or length-prefixed (default: fixed)
    --frame-width BYTES   Fixed frame width (default: 64)
    --logs-dir DIR        Also write logs to DIR/server.log
    --no-console          Do not read operator commands from stdin

Operator commands typed on stdin:
    /stop                 Save accounts, notify everyone and exit
    /listall              Log the connected users
    any other text        Broadcast as a server announcement
"""

import sys

if __name__ == "__main__":
    from framechat.server.main_server import main

    sys.exit(main())
