#!/usr/bin/env python3
"""
framechat Client - Main Entry Point

Usage:
    framechat-client [--host HOST] [--port PORT] [--no-login]
"""

import argparse
import asyncio
import sys

from framechat.client.chat_client import ChatClient
from framechat.client.utils.config import ClientConfig
from framechat.common.constants import DEFAULT_HOST, DEFAULT_PORT, FRAME_WIDTH, FRAMING_FIXED, FRAMING_LENGTH_PREFIXED


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='framechat terminal client')
    parser.add_argument('--host', type=str, default=DEFAULT_HOST,
                        help=f'Server address (default: {DEFAULT_HOST})')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                        help=f'Server port (default: {DEFAULT_PORT})')
    parser.add_argument('--framing', choices=[FRAMING_FIXED, FRAMING_LENGTH_PREFIXED], default=FRAMING_FIXED,
                        help='Framing discipline, must match the server (default: fixed)')
    parser.add_argument('--frame-width', type=int, default=FRAME_WIDTH,
                        help=f'Bytes per fixed-width frame (default: {FRAME_WIDTH})')
    parser.add_argument('--no-login', action='store_true',
                        help='Skip the login prompt and chat as a guest')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = ClientConfig(args.host, args.port, args.framing, args.frame_width)
    config.ask_login = not args.no_login

    client = ChatClient(config)
    try:
        connected = asyncio.run(client.interactive_mode())
    except KeyboardInterrupt:
        print("\nClosing chat...")
        return 0
    return 0 if connected else 1


if __name__ == "__main__":
    sys.exit(main())
