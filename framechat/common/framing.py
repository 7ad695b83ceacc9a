"""
Framing codecs for the framechat wire protocol.

Every application message travels as one frame. The default discipline is a
fixed-width block: UTF-8 text followed by zero padding, where the first zero
byte marks the end of the message. The length-prefixed discipline carries a
big-endian length header instead and never truncates.
"""

import asyncio
import struct

from framechat.common.constants import FRAME_WIDTH, FRAME_HEADER_SIZE, FRAMING_FIXED, FRAMING_LENGTH_PREFIXED


class FramingError(Exception):
    """Raised when a frame cannot be encoded or decoded."""


def _truncate_utf8(data: bytes, limit: int) -> bytes:
    """Cut ``data`` to at most ``limit`` bytes without splitting a character."""
    if len(data) <= limit:
        return data
    cut = data[:limit]
    # Back off over continuation bytes, then drop the dangling lead byte
    end = len(cut)
    while end > 0 and (cut[end - 1] & 0xC0) == 0x80:
        end -= 1
    if end > 0 and cut[end - 1] >= 0xC0:
        lead = cut[end - 1]
        needed = 2 if lead < 0xE0 else 3 if lead < 0xF0 else 4
        if len(cut) - (end - 1) < needed:
            return cut[:end - 1]
    return cut


def encode(text: str, width: int = FRAME_WIDTH) -> bytes:
    """Encode text into a zero-padded frame of exactly ``width`` bytes."""
    data = _truncate_utf8(text.encode('utf-8'), width - 1)
    return data.ljust(width, b'\0')


def decode(frame: bytes) -> str:
    """Decode everything before the first zero byte as UTF-8."""
    end = frame.find(b'\0')
    payload = frame if end < 0 else frame[:end]
    try:
        return payload.decode('utf-8')
    except UnicodeDecodeError as e:
        raise FramingError(f"Invalid UTF-8 in frame: {e}") from e


class FixedWidthCodec:
    """Fixed-width zero-terminated frames."""

    name = FRAMING_FIXED

    def __init__(self, width: int = FRAME_WIDTH):
        if width < 2:
            raise ValueError(f"Frame width must be at least 2 bytes, got {width}")
        self.width = width

    def encode(self, text: str) -> bytes:
        return encode(text, self.width)

    def decode(self, frame: bytes) -> str:
        return decode(frame)

    def is_truncated(self, text: str) -> bool:
        """Return True if ``text`` will not fit in one frame."""
        return len(text.encode('utf-8')) > self.width - 1

    async def read_frame(self, reader: asyncio.StreamReader) -> bytes:
        return await reader.readexactly(self.width)


class LengthPrefixedCodec:
    """Frames made of a big-endian length header followed by UTF-8 text."""

    name = FRAMING_LENGTH_PREFIXED

    _FORMATS = {2: '!H', 4: '!I'}

    def __init__(self, header_size: int = FRAME_HEADER_SIZE):
        if header_size not in self._FORMATS:
            raise ValueError(f"Unsupported header size: {header_size}")
        self.header_size = header_size
        self.header_format = self._FORMATS[header_size]
        self.max_payload = (1 << (8 * header_size)) - 1

    def encode(self, text: str) -> bytes:
        data = text.encode('utf-8')
        if len(data) > self.max_payload:
            raise FramingError(f"Message too large: {len(data)} bytes (max {self.max_payload})")
        return struct.pack(self.header_format, len(data)) + data

    def decode(self, frame: bytes) -> str:
        if len(frame) < self.header_size:
            raise FramingError("Frame shorter than its header")
        (length,) = struct.unpack(self.header_format, frame[:self.header_size])
        payload = frame[self.header_size:]
        if len(payload) != length:
            raise FramingError(f"Frame length mismatch: header says {length}, got {len(payload)}")
        try:
            return payload.decode('utf-8')
        except UnicodeDecodeError as e:
            raise FramingError(f"Invalid UTF-8 in frame: {e}") from e

    def is_truncated(self, text: str) -> bool:
        return False

    async def read_frame(self, reader: asyncio.StreamReader) -> bytes:
        header = await reader.readexactly(self.header_size)
        (length,) = struct.unpack(self.header_format, header)
        payload = await reader.readexactly(length) if length else b''
        return header + payload


def create_codec(framing: str = FRAMING_FIXED, frame_width: int = FRAME_WIDTH):
    """Build the codec selected by configuration."""
    if framing == FRAMING_FIXED:
        return FixedWidthCodec(frame_width)
    if framing == FRAMING_LENGTH_PREFIXED:
        return LengthPrefixedCodec()
    raise ValueError(f"Unknown framing discipline: {framing}")
