from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Optional

from .config import ReceiverConfig
from .errors import BenchError, ProtocolViolation
from .ledger import TimingLedger
from .net import TcpConnection, TcpEndpoint
from .packet import ControlToken, Frame, FrameCodec, FrameKind

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    IDLE = "idle"
    RECEIVING = "receiving"
    CLOSED = "closed"


class Event(enum.Enum):
    DATA = "data"
    START = ControlToken.START.value
    END = ControlToken.END.value
    SEND_AGAIN = ControlToken.SEND_AGAIN.value
    EXIT = ControlToken.EXIT.value


_TRANSITIONS: dict[tuple[SessionState, Event], SessionState] = {
    (SessionState.IDLE, Event.START): SessionState.RECEIVING,
    (SessionState.RECEIVING, Event.DATA): SessionState.RECEIVING,
    (SessionState.RECEIVING, Event.END): SessionState.IDLE,
    (SessionState.IDLE, Event.SEND_AGAIN): SessionState.IDLE,
    (SessionState.IDLE, Event.EXIT): SessionState.CLOSED,
    (SessionState.RECEIVING, Event.EXIT): SessionState.CLOSED,
}


def classify(frame: Frame) -> Event:
    if frame.kind == FrameKind.FILE_DATA:
        if frame.length == 0:
            raise ProtocolViolation("empty FileData frame")
        return Event.DATA
    token = frame.token
    if token is None:
        raise ProtocolViolation(f"unrecognized control token {frame.payload[:32]!r}")
    return Event(token.value)


def transition(state: SessionState, event: Event) -> SessionState:
    try:
        return _TRANSITIONS[(state, event)]
    except KeyError:
        raise ProtocolViolation(f"{event.value} not allowed while {state.value}") from None


@dataclass(slots=True)
class ReceiverSession:
    """Receiving half of a session, driven one frame at a time.

    An output target for the first file is opened when the session starts;
    SEND_AGAIN opens the next numbered one. Each START..END pair appends one
    sample to the ledger. A session that fails keeps whatever bytes reached
    the target but records nothing for the unfinished file.
    """

    conn: TcpConnection
    config: ReceiverConfig = field(default_factory=ReceiverConfig)
    ledger: TimingLedger = field(default_factory=TimingLedger)
    state: SessionState = SessionState.IDLE
    seq: int = 0
    completed: list[Path] = field(default_factory=list)
    codec: FrameCodec = field(init=False)
    out: Optional[BinaryIO] = field(default=None, init=False)
    out_path: Optional[Path] = field(default=None, init=False)
    started_at: float = field(default=0.0, init=False)
    bytes_in_run: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.codec = FrameCodec(self.config.capacity)

    def read_frame(self) -> Frame:
        return self.codec.decode(self.conn.recv_exact(self.codec.size))

    def handle(self, frame: Frame) -> SessionState:
        try:
            event = classify(frame)
            nxt = transition(self.state, event)
        except ProtocolViolation:
            self.state = SessionState.CLOSED
            self._close_target()
            raise

        if event is Event.DATA:
            self.out.write(frame.payload)
            self.bytes_in_run += frame.length
            logger.debug("<- data %d bytes", frame.length)
        elif event is Event.START:
            self._begin()
        elif event is Event.END:
            self._finish()
        elif event is Event.SEND_AGAIN:
            self._open_target()
        elif event is Event.EXIT:
            if self.state is SessionState.RECEIVING:
                logger.warning("EXIT while receiving %s; discarding run", self.out_path)
            self._close_target()
            logger.info("EXIT received")

        self.state = nxt
        return nxt

    def run(self) -> TimingLedger:
        if self.out is None:
            self._open_target()
        try:
            while self.state is not SessionState.CLOSED:
                self.handle(self.read_frame())
        except BenchError:
            self.state = SessionState.CLOSED
            raise
        finally:
            self._close_target()
        return self.ledger

    def _open_target(self) -> None:
        if self.out is not None:
            logger.warning("replacing unused output target %s", self.out_path)
            self._close_target()
        self.out_path = self.config.output_path(self.seq)
        self.seq += 1
        self.out = open(self.out_path, "wb")
        logger.debug("opened %s", self.out_path)

    def _close_target(self) -> None:
        if self.out is None:
            return
        try:
            self.out.close()
        finally:
            self.out = None

    def _begin(self) -> None:
        if self.out is None:
            self._open_target()
        self.bytes_in_run = 0
        self.started_at = time.perf_counter()

    def _finish(self) -> None:
        elapsed_ms = (time.perf_counter() - self.started_at) * 1000.0
        self.ledger.append(elapsed_ms, self.bytes_in_run)
        self._close_target()
        self.completed.append(self.out_path)
        logger.info(
            "file %d transfer completed; %s bytes=%d time=%.2f ms",
            len(self.completed),
            self.out_path,
            self.bytes_in_run,
            elapsed_ms,
        )


def serve(endpoint: TcpEndpoint, config: ReceiverConfig) -> ReceiverSession:
    """Accept one connection on ``endpoint`` and run a session to completion.

    The connection is always closed on return. The finished session is
    returned so callers can read its ledger and output files.
    """
    conn = endpoint.accept()
    with conn:
        session = ReceiverSession(conn, config)
        session.run()
    return session
