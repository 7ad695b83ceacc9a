#!/usr/bin/env python3
"""
End-to-end tests for the chat server over real sockets.
"""

import asyncio
import io
import os
import tempfile
import unittest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from framechat.client.chat_client import ChatClient
from framechat.client.utils.config import ClientConfig
from framechat.common.constants import FRAME_WIDTH, OPERATOR_ID, EXIT_OK, EXIT_FAILURE
from framechat.common.framing import encode, decode
from framechat.common.protocol_definitions import InboundEnvelope
from framechat.server.main_server import ChatServer, OperatorConsole, OperatorInputError, build_parser
from framechat.server.utils.config import ServerConfig


def make_config(tmp_dir: str, port: int = 0) -> ServerConfig:
    config = ServerConfig(host='127.0.0.1', port=port, accounts_path=os.path.join(tmp_dir, 'accounts.txt'))
    config.operator_console = False
    config.poll_interval = 0.01
    config.shutdown_grace = 0.05
    return config


class ServerTestCase(unittest.IsolatedAsyncioTestCase):
    """Base fixture: a running server on an ephemeral port."""

    async def asyncSetUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.config = make_config(self.tmp.name)
        self.chat_server = ChatServer(self.config)
        server = await self.chat_server.open()
        self.port = server.sockets[0].getsockname()[1]
        self.connections = []

    async def asyncTearDown(self):
        for _, writer in self.connections:
            writer.close()
        await self.chat_server.close()
        self.tmp.cleanup()

    async def wait_until(self, predicate, timeout: float = 2.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                self.fail("condition not reached in time")
            await asyncio.sleep(0.01)

    async def connect(self):
        expected = len(self.chat_server.router.users) + 1
        reader, writer = await asyncio.open_connection('127.0.0.1', self.port)
        self.connections.append((reader, writer))
        await self.wait_until(lambda: len(self.chat_server.router.users) == expected)
        return reader, writer

    async def send(self, writer, text: str):
        writer.write(encode(text))
        await writer.drain()

    async def receive(self, reader) -> str:
        frame = await asyncio.wait_for(reader.readexactly(FRAME_WIDTH), 2.0)
        return decode(frame)

    async def assert_silent(self, reader):
        with self.assertRaises(asyncio.TimeoutError):
            await asyncio.wait_for(reader.readexactly(FRAME_WIDTH), 0.2)


class TestChatServer(ServerTestCase):

    async def test_three_clients_scenario(self):
        r1, w1 = await self.connect()
        r2, w2 = await self.connect()
        r3, w3 = await self.connect()
        users = self.chat_server.router.users
        self.assertEqual([u.uid for u in users], [1, 2, 3])
        self.assertEqual([u.username for u in users], ["Guest1", "Guest2", "Guest3"])

        await self.send(w1, "/create alice secret")
        self.assertEqual(await self.receive(r1), "Account created. Welcome, alice!")
        self.assertEqual(users[0].username, "alice")
        self.assertEqual(self.chat_server.accounts.records[0].username, "alice")

        await self.send(w2, "hi")
        self.assertEqual(await self.receive(r1), "Guest2: hi")
        self.assertEqual(await self.receive(r3), "Guest2: hi")
        await self.assert_silent(r2)

    async def test_whisper_unknown_target(self):
        r1, w1 = await self.connect()
        r2, _ = await self.connect()
        await self.send(w1, "/whisper nonexistent hello")
        self.assertEqual(await self.receive(r1), "User nonexistent not found")
        await self.assert_silent(r2)

    async def test_operator_stop(self):
        r1, w1 = await self.connect()
        r2, _ = await self.connect()
        await self.send(w1, "/create alice secret")
        self.assertEqual(await self.receive(r1), "Account created. Welcome, alice!")

        self.chat_server.router.inbound.put_nowait(InboundEnvelope(OPERATOR_ID, "/stop"))
        self.assertEqual(await self.receive(r1), "Server is shutting down.")
        self.assertEqual(await self.receive(r2), "Server is shutting down.")
        await asyncio.wait_for(self.chat_server.router_task, 2.0)

        content = Path(self.config.accounts_path).read_text(encoding='utf-8')
        self.assertEqual(content, "username=alice;password=secret\n")

    async def test_disconnected_client_is_removed_on_next_write(self):
        _, w1 = await self.connect()
        _, w2 = await self.connect()
        first = self.chat_server.router.users[0]
        w1.close()
        await w1.wait_closed()
        # the server closes its side once the ingestor sees EOF
        await self.wait_until(lambda: first.writer.is_closing())
        self.assertIn(first, self.chat_server.router.users)
        await self.send(w2, "anyone?")
        await self.wait_until(lambda: len(self.chat_server.router.users) == 1)
        self.assertEqual(self.chat_server.router.users[0].uid, 2)

    async def test_invalid_frame_closes_connection(self):
        r1, w1 = await self.connect()
        w1.write(b"\xff\xfe".ljust(FRAME_WIDTH, b"\0"))
        await w1.drain()
        self.assertEqual(await asyncio.wait_for(r1.read(), 2.0), b"")

    async def test_client_ping(self):
        client = ChatClient(ClientConfig('127.0.0.1', self.port))
        self.assertTrue(await client.connect())
        self.connections.append((client.reader, client.writer))
        await self.wait_until(lambda: len(self.chat_server.router.users) == 1)
        self.assertTrue(await client.send("/ping"))
        self.assertEqual(await self.receive(client.reader), "pong")
        await client.close()


class TestServerLifecycle(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.tmp = tempfile.TemporaryDirectory()

    async def asyncTearDown(self):
        self.tmp.cleanup()

    async def test_orderly_stop_exits_zero(self):
        chat_server = ChatServer(make_config(self.tmp.name))
        chat_server.router.inbound.put_nowait(InboundEnvelope(OPERATOR_ID, "/stop"))
        self.assertEqual(await asyncio.wait_for(chat_server.start(), 5.0), EXIT_OK)
        self.assertTrue(Path(chat_server.config.accounts_path).exists())

    async def test_flush_failure_on_stop_exits_nonzero(self):
        config = make_config(self.tmp.name)
        # a directory cannot be rewritten as the account file
        config.accounts_path = self.tmp.name
        chat_server = ChatServer(config)
        chat_server.router.inbound.put_nowait(InboundEnvelope(OPERATOR_ID, "/stop"))
        self.assertEqual(await asyncio.wait_for(chat_server.start(), 5.0), EXIT_FAILURE)

    async def test_bind_failure_exits_nonzero(self):
        blocker = await asyncio.start_server(lambda r, w: None, '127.0.0.1', 0)
        port = blocker.sockets[0].getsockname()[1]
        try:
            chat_server = ChatServer(make_config(self.tmp.name, port))
            self.assertEqual(await chat_server.start(), EXIT_FAILURE)
        finally:
            blocker.close()
            await blocker.wait_closed()


class BrokenStream:
    def readline(self):
        raise OSError("stdin is gone")


class TestOperatorConsole(unittest.IsolatedAsyncioTestCase):

    async def test_lines_become_operator_envelopes(self):
        inbound = asyncio.Queue()
        console = OperatorConsole(asyncio.get_running_loop(), inbound, io.StringIO("/listall\n  /stop \n"))
        console.start()
        first = await asyncio.wait_for(inbound.get(), 2.0)
        second = await asyncio.wait_for(inbound.get(), 2.0)
        self.assertEqual(first, InboundEnvelope(OPERATOR_ID, "/listall"))
        self.assertEqual(second, InboundEnvelope(OPERATOR_ID, "/stop"))

    async def test_read_failure_is_reported(self):
        console = OperatorConsole(asyncio.get_running_loop(), asyncio.Queue(), BrokenStream())
        console.start()
        with self.assertRaises(OperatorInputError):
            await asyncio.wait_for(console.failed, 2.0)


class TestArguments(unittest.TestCase):

    def test_defaults(self):
        args = build_parser().parse_args([])
        self.assertEqual(args.port, 6000)
        self.assertEqual(args.frame_width, FRAME_WIDTH)
        self.assertEqual(args.framing, 'fixed')
        self.assertFalse(args.no_console)

    def test_overrides(self):
        args = build_parser().parse_args(['--port', '7000', '--framing', 'length-prefixed', '--no-console'])
        self.assertEqual(args.port, 7000)
        self.assertEqual(args.framing, 'length-prefixed')
        self.assertTrue(args.no_console)


if __name__ == '__main__':
    unittest.main()
