"""
Connection ingestor module.

One ingestor runs per accepted connection. It only reads: each frame is
decoded and pushed onto the router's inbound queue tagged with the
connection's uid. Any read error, peer EOF or undecodable frame ends it.
"""

import asyncio
from enum import Enum

from framechat.common.framing import FramingError
from framechat.common.protocol_definitions import InboundEnvelope
from framechat.server.utils.logger import logger


class IngestorState(Enum):
    IDLE = 'idle'
    HAS_FRAME = 'has_frame'
    CLOSED = 'closed'


class ConnectionIngestor:
    """Reads frames from one client and forwards them to the router."""

    def __init__(self, uid: int, reader: asyncio.StreamReader, inbound: asyncio.Queue, codec):
        self.uid = uid
        self.reader = reader
        self.inbound = inbound
        self.codec = codec
        self.state = IngestorState.IDLE
        self.close_reason = None

    async def run(self):
        """Forward frames until the connection ends."""
        try:
            while True:
                self.state = IngestorState.IDLE
                frame = await self.codec.read_frame(self.reader)
                self.state = IngestorState.HAS_FRAME
                text = self.codec.decode(frame)
                logger.debug(f"uid={self.uid}: {text!r}")
                await self.inbound.put(InboundEnvelope(self.uid, text))
        except asyncio.IncompleteReadError:
            self.close_reason = "peer closed the connection"
        except FramingError as e:
            self.close_reason = f"protocol violation: {e}"
        except (ConnectionError, OSError) as e:
            self.close_reason = f"read error: {e}"
        finally:
            self.state = IngestorState.CLOSED
            if self.close_reason:
                logger.log_connection_closed(self.uid, self.close_reason)
