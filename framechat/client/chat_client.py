"""
Chat client module.

Interactive terminal client: prints every frame the server sends and turns
typed lines into outgoing messages, checking commands locally first.
"""

import asyncio
import sys
import threading
from typing import Optional, Tuple

from framechat.client.utils.config import ClientConfig
from framechat.client.utils.logger import logger
from framechat.common.constants import Commands, QUIT_COMMAND, CANCEL_INPUT
from framechat.common.framing import FramingError
from framechat.common.protocol_definitions import is_command


PASSTHROUGH_COMMANDS = (Commands.LISTALL, Commands.PING, Commands.ABOUTME)


class ChatClient:
    """Client-side chat functionality."""

    def __init__(self, config: ClientConfig, stream=None):
        self.config = config
        self.codec = config.create_codec()
        self.stream = stream or sys.stdin
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None
        self.lines: asyncio.Queue = asyncio.Queue()
        self.running = False

    async def connect(self) -> bool:
        """Open the connection to the server."""
        info = self.config.get_connection_info()
        try:
            self.reader, self.writer = await asyncio.open_connection(info['host'], info['port'])
        except OSError as e:
            logger.log_connection(info['host'], info['port'], False)
            print(f"Failed to connect to server at: {info['host']}:{info['port']} ({e})")
            return False
        logger.log_connection(info['host'], info['port'], True)
        print(f"Connected to server at: {info['host']}:{info['port']}")
        self.running = True
        return True

    async def send(self, text: str) -> bool:
        """Send one message to the server."""
        if not self.writer:
            print("Not connected to server")
            return False
        if self.codec.is_truncated(text):
            logger.log_truncated(text, self.config.frame_width)
        try:
            self.writer.write(self.codec.encode(text))
            await self.writer.drain()
            return True
        except (ConnectionError, OSError, FramingError) as e:
            logger.log_error("send", e)
            print("Failed to send message!")
            return False

    async def listen(self):
        """Print incoming messages until the connection drops."""
        try:
            while self.running:
                frame = await self.codec.read_frame(self.reader)
                print(self.codec.decode(frame))
        except (asyncio.IncompleteReadError, ConnectionError, OSError, FramingError) as e:
            logger.debug(f"Listener stopped: {e}")
            print("Lost connection with server!")
        finally:
            self.running = False

    def start_input_thread(self, loop: asyncio.AbstractEventLoop):
        """Feed stdin lines into ``self.lines``; ``None`` marks end of input."""
        def read_lines():
            while True:
                try:
                    line = self.stream.readline()
                except (OSError, ValueError) as e:
                    logger.log_error("input", e)
                    line = ''
                if not line:
                    loop.call_soon_threadsafe(self.lines.put_nowait, None)
                    return
                loop.call_soon_threadsafe(self.lines.put_nowait, line.rstrip('\r\n'))

        threading.Thread(target=read_lines, name='client-input', daemon=True).start()

    async def ask(self, prompt: str) -> Optional[str]:
        """Print a prompt and wait for the next typed line."""
        print(prompt)
        line = await self.lines.get()
        return None if line is None else line.strip()

    async def prompt_credentials(self, ask_for_confirmation: bool) -> Optional[Tuple[str, str]]:
        """Ask for username and password. Returns None if the user backs out."""
        if ask_for_confirmation:
            answer = await self.ask("Do you want to log in: (y/n)")
            if answer != 'y':
                return None

        username = await self.ask(f"Write your username: (\"{CANCEL_INPUT}\" to stop logging in)")
        if username is None or username.lower() == CANCEL_INPUT:
            print("Canceled log in.")
            return None
        password = await self.ask(f"Write your password: (\"{CANCEL_INPUT}\" to stop logging in)")
        if password is None or password.lower() == CANCEL_INPUT:
            print("Canceled log in.")
            return None

        if not (username.isascii() and password.isascii()) or not username or not password:
            print("Failed to log in. Use ascii next time!")
            return None
        return username.lower(), password.lower()

    async def prepare_outgoing(self, line: str) -> Optional[str]:
        """
        Validate a typed line before it goes on the wire.

        Returns the text to send, or None if nothing should be sent.
        /login and /create with the wrong number of arguments prompt for
        credentials instead of failing on the server.
        """
        msg = line.strip()
        if not msg:
            return None
        if not is_command(msg):
            return msg

        tokens = msg.split()
        verb = tokens[0]
        if verb in (Commands.LOGIN, Commands.CREATE):
            if len(tokens) == 3:
                return msg
            credentials = await self.prompt_credentials(False)
            if credentials is None:
                return None
            return f"{verb} {credentials[0]} {credentials[1]}"
        if verb == Commands.WHISPER:
            if len(tokens) < 3:
                print(f"Usage: {Commands.WHISPER} <user> <message>")
                return None
            return msg
        if verb in PASSTHROUGH_COMMANDS:
            return msg

        print("Unknown command!")
        return None

    async def close(self):
        self.running = False
        if self.writer:
            self.writer.close()
            try:
                await self.writer.wait_closed()
            except (ConnectionError, OSError):
                pass

    async def interactive_mode(self):
        """Run the client with interactive chat input."""
        if not await self.connect():
            return False

        self.start_input_thread(asyncio.get_running_loop())
        listener_task = asyncio.create_task(self.listen())

        try:
            if self.config.ask_login:
                credentials = await self.prompt_credentials(True)
                if credentials and not await self.send(f"{Commands.LOGIN} {credentials[0]} {credentials[1]}"):
                    print("Couldn't establish connection")
                    return False

            print("Chat open:")
            while self.running:
                line = await self.lines.get()
                if line is None or line.strip() == QUIT_COMMAND:
                    break
                outgoing = await self.prepare_outgoing(line)
                if outgoing is not None and not await self.send(outgoing):
                    break
        finally:
            listener_task.cancel()
            try:
                await listener_task
            except asyncio.CancelledError:
                pass
            await self.close()
            print("Closing chat...")
        return True
