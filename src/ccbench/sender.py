from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import BinaryIO, Iterable, Optional

from .constants import MIB
from .net import TcpConnection
from .packet import ControlToken, Frame, FrameCodec

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TransferStats:
    frames_sent: int = 0
    bytes_sent: int = 0
    start_ts: float = field(default_factory=time.perf_counter)
    end_ts: Optional[float] = None

    @property
    def duration_s(self) -> float:
        if self.end_ts is None:
            return 0.0
        return max(0.0, self.end_ts - self.start_ts)

    @property
    def throughput_mib_s(self) -> float:
        if self.duration_s <= 0:
            return 0.0
        return (self.bytes_sent / MIB) / self.duration_s


@dataclass(slots=True)
class Sender:
    """Sending half of a session: START, data frames, END, then SEND_AGAIN or EXIT."""

    codec: FrameCodec = field(default_factory=FrameCodec)

    def _emit(self, conn: TcpConnection, frame: Frame) -> None:
        conn.send_all(self.codec.encode(frame))

    def _emit_control(self, conn: TcpConnection, token: ControlToken) -> None:
        logger.debug("-> %s", token.value)
        self._emit(conn, Frame.control(token))

    def send_file(self, conn: TcpConnection, source: BinaryIO) -> TransferStats:
        stats = TransferStats()
        self._emit_control(conn, ControlToken.START)

        while True:
            chunk = source.read(self.codec.capacity)
            if not chunk:
                break
            self._emit(conn, Frame.data(chunk))
            stats.frames_sent += 1
            stats.bytes_sent += len(chunk)

        self._emit_control(conn, ControlToken.END)
        stats.end_ts = time.perf_counter()
        logger.info(
            "file sent; frames=%d bytes=%d throughput=%.2f MiB/s",
            stats.frames_sent,
            stats.bytes_sent,
            stats.throughput_mib_s,
        )
        return stats

    def signal_repeat(self, conn: TcpConnection) -> None:
        self._emit_control(conn, ControlToken.SEND_AGAIN)

    def signal_done(self, conn: TcpConnection) -> None:
        self._emit_control(conn, ControlToken.EXIT)

    def run(self, conn: TcpConnection, paths: Iterable[str]) -> list[TransferStats]:
        """Send every file in order over one connection, then EXIT.

        The connection is left open; closing it is up to the caller.
        """
        results: list[TransferStats] = []
        for i, path in enumerate(paths):
            if i:
                self.signal_repeat(conn)
            with open(path, "rb") as f:
                logger.info("sending %s", path)
                results.append(self.send_file(conn, f))
        self.signal_done(conn)
        return results
