#!/usr/bin/env python3
"""
framechat Server - Main Entry Point

Accepts client connections, starts one ingestor per connection, runs the
broadcast router, and optionally reads operator commands from stdin.
"""

import argparse
import asyncio
import logging
import sys
import threading
from typing import Optional

from framechat.common.constants import (
    DEFAULT_SERVER_HOST, DEFAULT_PORT, ACCOUNTS_FILE, FRAME_WIDTH, FRAMING_FIXED,
    FRAMING_LENGTH_PREFIXED, LOG_DIR, OPERATOR_ID, EXIT_OK, EXIT_FAILURE
)
from framechat.common.protocol_definitions import InboundEnvelope
from framechat.server.accounts.account_store import AccountStore, AccountStoreError
from framechat.server.chat.ingestor import ConnectionIngestor
from framechat.server.chat.router import BroadcastRouter
from framechat.server.utils.config import ServerConfig
from framechat.server.utils.logger import logger


class OperatorInputError(Exception):
    """Raised when a line of operator input cannot be read."""


class OperatorConsole:
    """Reads operator lines on a daemon thread and injects them as envelopes."""

    def __init__(self, loop: asyncio.AbstractEventLoop, inbound: asyncio.Queue, stream=None):
        self.loop = loop
        self.inbound = inbound
        self.stream = stream or sys.stdin
        self.failed = loop.create_future()
        self.thread = None

    def start(self):
        self.thread = threading.Thread(target=self._read_lines, name='operator-console', daemon=True)
        self.thread.start()

    def _read_lines(self):
        while True:
            try:
                line = self.stream.readline()
            except (OSError, ValueError, UnicodeDecodeError) as e:
                self.loop.call_soon_threadsafe(self._fail, OperatorInputError(f"Failed to read operator input: {e}"))
                return
            if not line:
                logger.info("Operator input closed")
                return
            envelope = InboundEnvelope(OPERATOR_ID, line.strip())
            self.loop.call_soon_threadsafe(self.inbound.put_nowait, envelope)

    def _fail(self, error: Exception):
        if not self.failed.done():
            self.failed.set_exception(error)


class ChatServer:
    """Acceptor that ties connections, ingestors and the router together."""

    def __init__(self, config: ServerConfig):
        self.config = config
        self.accounts = AccountStore(config.accounts_path)
        self.router = BroadcastRouter(
            self.accounts,
            codec=config.create_codec(),
            poll_interval=config.poll_interval,
            shutdown_grace=config.shutdown_grace,
            write_timeout=config.write_timeout
        )
        self.server: Optional[asyncio.AbstractServer] = None
        self.router_task: Optional[asyncio.Task] = None
        self.console: Optional[OperatorConsole] = None

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Admit a connection and run its ingestor until it ends."""
        addr = writer.get_extra_info('peername')
        user = self.router.admit(writer, addr)
        ingestor = ConnectionIngestor(user.uid, reader, self.router.inbound, self.router.codec)
        try:
            await ingestor.run()
        finally:
            # The router notices the closed transport on its next write
            writer.close()

    async def open(self):
        """Load accounts, bind the listening socket and start the router."""
        self.accounts.load()
        self.server = await asyncio.start_server(
            self.handle_client,
            self.config.host,
            self.config.port
        )
        addr = ', '.join(str(sock.getsockname()) for sock in self.server.sockets)
        logger.info(f"Server listening on {addr} ({self.config.get_wire_settings()})")
        self.router_task = asyncio.create_task(self.router.run())
        return self.server

    async def close(self):
        """Stop accepting, close every connection and stop the router."""
        if self.router_task and not self.router_task.done():
            self.router_task.cancel()
            try:
                await self.router_task
            except asyncio.CancelledError:
                pass
        self.router.close_all()
        if self.server:
            self.server.close()
            await self.server.wait_closed()

    async def start(self) -> int:
        """Run until an orderly stop. Returns the process exit code."""
        try:
            await self.open()
        except OSError as e:
            info = self.config.get_connection_info()
            logger.error(f"Failed to bind to {info['host']}:{info['port']}: {e}")
            return EXIT_FAILURE

        waiters = {self.router_task}
        if self.config.operator_console:
            self.console = OperatorConsole(asyncio.get_running_loop(), self.router.inbound)
            self.console.start()
            waiters.add(self.console.failed)

        try:
            done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            for finished in done:
                finished.result()
        except OperatorInputError as e:
            logger.error(str(e))
            return EXIT_FAILURE
        except AccountStoreError as e:
            logger.log_error("shutdown", e)
            return EXIT_FAILURE
        finally:
            await self.close()

        logger.info("Server stopped")
        return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='framechat broadcast chat server')
    parser.add_argument('--host', type=str, default=DEFAULT_SERVER_HOST,
                        help=f'Host to bind to (default: {DEFAULT_SERVER_HOST})')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                        help=f'TCP port to listen on (default: {DEFAULT_PORT})')
    parser.add_argument('--accounts', type=str, default=ACCOUNTS_FILE,
                        help=f'Account file (default: {ACCOUNTS_FILE})')
    parser.add_argument('--framing', choices=[FRAMING_FIXED, FRAMING_LENGTH_PREFIXED], default=FRAMING_FIXED,
                        help='Framing discipline, must match the clients (default: fixed)')
    parser.add_argument('--frame-width', type=int, default=FRAME_WIDTH,
                        help=f'Bytes per fixed-width frame (default: {FRAME_WIDTH})')
    parser.add_argument('--logs-dir', type=str, default=None,
                        help=f'Also write logs to this directory (e.g. {LOG_DIR})')
    parser.add_argument('--no-console', action='store_true',
                        help='Do not read operator commands from stdin')
    parser.add_argument('--log-level', type=str, default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Log level (default: INFO)')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logger.set_level(getattr(logging, args.log_level))
    config = ServerConfig(
        host=args.host,
        port=args.port,
        accounts_path=args.accounts,
        framing=args.framing,
        frame_width=args.frame_width
    )
    config.operator_console = not args.no_console
    if args.logs_dir:
        config.logs_dir = args.logs_dir
        config.log_to_file = True
        logger.enable_file_logging(config.logs_dir)

    server = ChatServer(config)
    try:
        return asyncio.run(server.start())
    except KeyboardInterrupt:
        logger.info("Server shutting down...")
        try:
            server.accounts.flush()
        except AccountStoreError as e:
            logger.log_error("shutdown", e)
            return EXIT_FAILURE
        return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
