from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import Optional

from .constants import (
    CONTROL,
    DEFAULT_CAPACITY,
    FILE_DATA,
    FRAME_FORMAT,
)
from .errors import MalformedFrame


class FrameKind(enum.IntEnum):
    FILE_DATA = FILE_DATA
    CONTROL = CONTROL


class ControlToken(str, enum.Enum):
    START = "START"
    END = "END"
    SEND_AGAIN = "SEND_AGAIN"
    EXIT = "EXIT"


# a frame must be able to carry the longest control token
MIN_CAPACITY = max(len(t.value.encode("utf-8")) for t in ControlToken)


@dataclass(frozen=True, slots=True)
class Frame:
    kind: FrameKind
    payload: bytes = b""

    @property
    def length(self) -> int:
        return len(self.payload)

    @property
    def token(self) -> Optional[ControlToken]:
        """The control token carried by this frame, or None if unrecognized."""
        if self.kind != FrameKind.CONTROL:
            return None
        try:
            text = self.payload.removesuffix(b"\x00").decode("utf-8")
        except UnicodeDecodeError:
            return None
        try:
            return ControlToken(text)
        except ValueError:
            return None

    @staticmethod
    def data(chunk: bytes) -> "Frame":
        return Frame(kind=FrameKind.FILE_DATA, payload=bytes(chunk))

    @staticmethod
    def control(token: ControlToken) -> "Frame":
        return Frame(kind=FrameKind.CONTROL, payload=token.value.encode("utf-8"))


class FrameCodec:
    """Fixed-size frame envelope: kind, payload padded to capacity, length.

    Every encoded frame is exactly ``size`` bytes long whatever its length,
    so a reader always knows how much to pull off the stream.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < MIN_CAPACITY:
            raise ValueError(f"capacity must be at least {MIN_CAPACITY}, got {capacity}")
        self.capacity = capacity
        self._struct = struct.Struct(FRAME_FORMAT.format(capacity=capacity))

    @property
    def size(self) -> int:
        return self._struct.size

    def encode(self, frame: Frame) -> bytes:
        if frame.length > self.capacity:
            raise ValueError(f"payload too large: {frame.length} > {self.capacity}")
        return self._struct.pack(int(frame.kind), frame.payload, frame.length)

    def decode(self, block: bytes) -> Frame:
        if len(block) != self.size:
            raise MalformedFrame(f"expected {self.size} byte block, got {len(block)}")

        kind, payload, length = self._struct.unpack(block)
        try:
            kind = FrameKind(kind)
        except ValueError:
            raise MalformedFrame(f"unknown frame kind {kind}") from None
        if length > self.capacity:
            raise MalformedFrame(f"length {length} exceeds capacity {self.capacity}")

        return Frame(kind=kind, payload=payload[:length])
