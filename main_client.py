#!/usr/bin/env python3
"""
framechat Client - Main Entry Point

Usage:
    python main_client.py [--host HOST] [--port PORT] [--no-login]

Commands:
    /login <user> <pass>      Log in to an existing account
    /create <user> <pass>     Create an account and log in
    /whisper <user> <msg>     Send a private message
    /listall                  List connected users
    /ping                     Check the server answers
    /aboutme                  Show your name and id
    :quit                     Leave the chat
"""

import sys

if __name__ == "__main__":
    from framechat.client.main_client import main

    sys.exit(main())
