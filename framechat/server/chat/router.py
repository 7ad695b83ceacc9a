"""
Broadcast router module.

The router is the only owner of the user registry. It drains the inbound
queue, resolves each sender, and either broadcasts chat text or hands the
message to the command dispatcher. Every outbound write goes through it, so
no two writes ever race on the same connection.
"""

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional

from framechat.common.constants import (
    FIRST_USER_ID, GUEST_PREFIX, OPERATOR_ID, POLL_INTERVAL, SHUTDOWN_GRACE, WRITE_TIMEOUT
)
from framechat.common.framing import FixedWidthCodec, FramingError
from framechat.common.protocol_definitions import (
    InboundEnvelope, is_command, create_chat_message, create_shutdown_message, create_error_message
)
from framechat.server.accounts.account_store import AccountStore
from framechat.server.chat.commands import CommandDispatcher
from framechat.server.utils.logger import logger


@dataclass
class User:
    """A connected client as seen by the router."""
    uid: int
    username: str
    writer: asyncio.StreamWriter = field(repr=False)
    address: Optional[tuple] = None


class BroadcastRouter:
    """Single point of truth for connected users and message routing."""

    def __init__(self, accounts: AccountStore, codec=None,
                 poll_interval: float = POLL_INTERVAL, shutdown_grace: float = SHUTDOWN_GRACE,
                 write_timeout: float = WRITE_TIMEOUT):
        self.accounts = accounts
        self.codec = codec or FixedWidthCodec()
        self.poll_interval = poll_interval
        self.shutdown_grace = shutdown_grace
        self.write_timeout = write_timeout
        self.users: List[User] = []
        self.inbound: asyncio.Queue = asyncio.Queue()
        self.next_uid = FIRST_USER_ID
        self.dispatcher = CommandDispatcher(self, accounts)
        self.stopped = asyncio.Event()

    def admit(self, writer: asyncio.StreamWriter, address: Optional[tuple] = None) -> User:
        """Register a new connection under the next uid with a guest name."""
        uid = self.next_uid
        self.next_uid += 1
        user = User(uid, f"{GUEST_PREFIX}{uid}", writer, address)
        self.users.append(user)
        logger.log_connection(address, uid)
        return user

    def get_user(self, uid: int) -> Optional[User]:
        for user in self.users:
            if user.uid == uid:
                return user
        return None

    def find_user(self, username: str) -> Optional[User]:
        """Return the first registered user with this display name."""
        for user in self.users:
            if user.username == username:
                return user
        return None

    def remove(self, user: User, reason: str):
        """Drop a user from the registry and close its connection."""
        if user not in self.users:
            return
        self.users.remove(user)
        user.writer.close()
        logger.log_disconnect(user.username, user.uid, reason)

    async def _write(self, user: User, frame: bytes) -> bool:
        try:
            if user.writer.is_closing():
                raise ConnectionResetError("connection closed")
            user.writer.write(frame)
            await asyncio.wait_for(user.writer.drain(), self.write_timeout)
            return True
        except asyncio.TimeoutError:
            # The peer stopped reading; drop whatever is still buffered for it
            user.writer.transport.abort()
            self.remove(user, f"write timed out after {self.write_timeout}s")
            return False
        except (ConnectionError, OSError) as e:
            self.remove(user, f"write failed: {e}")
            return False

    async def send(self, user: User, text: str) -> bool:
        """Send one message to one user. A failed write removes the user."""
        return await self._write(user, self.codec.encode(text))

    async def broadcast(self, text: str, exclude_uid: Optional[int] = None) -> int:
        """
        Send a message to every registered user except ``exclude_uid``.

        The frame is encoded once. Recipients whose write fails are removed
        and the broadcast carries on with the rest. Returns the number of
        users the message reached.
        """
        frame = self.codec.encode(text)
        delivered = 0
        for user in list(self.users):
            if exclude_uid is not None and user.uid == exclude_uid:
                continue
            if await self._write(user, frame):
                delivered += 1
        return delivered

    async def process(self, envelope: InboundEnvelope):
        """Route one inbound message. A reply that cannot be framed is refused."""
        try:
            await self._route(envelope)
        except FramingError as e:
            logger.log_error(f"routing from uid={envelope.sender_id}", e)
            sender = self.get_user(envelope.sender_id)
            if sender is not None:
                await self.send(sender, create_error_message(str(e)))

    async def _route(self, envelope: InboundEnvelope):
        if envelope.sender_id == OPERATOR_ID:
            await self.dispatcher.handle_operator(envelope.payload)
            return

        user = self.get_user(envelope.sender_id)
        if user is None:
            logger.log_dropped_envelope(envelope.sender_id)
            return

        if is_command(envelope.payload):
            await self.dispatcher.dispatch(user, envelope.payload)
            return

        message = create_chat_message(user.username, envelope.payload)
        if self.codec.is_truncated(message):
            logger.debug(f"Chat from uid={user.uid} truncated to the frame width")
        recipients = await self.broadcast(message, exclude_uid=user.uid)
        logger.log_chat(user.username, user.uid, envelope.payload, recipients)

    async def drain(self) -> int:
        """Process every envelope already queued, without waiting. Returns the count."""
        processed = 0
        while not self.stopped.is_set():
            try:
                envelope = self.inbound.get_nowait()
            except asyncio.QueueEmpty:
                break
            await self.process(envelope)
            processed += 1
        return processed

    async def run(self):
        """Drain the queue on a fixed cadence until shutdown."""
        while not self.stopped.is_set():
            if not await self.drain():
                await asyncio.sleep(self.poll_interval)

    async def shutdown(self):
        """Persist accounts, tell everyone, then stop after the grace delay."""
        logger.log_shutdown(len(self.users))
        self.accounts.flush()
        await self.broadcast(create_shutdown_message())
        await asyncio.sleep(self.shutdown_grace)
        self.stopped.set()

    def close_all(self):
        """Close every registered connection."""
        for user in list(self.users):
            self.remove(user, "server stopped")
