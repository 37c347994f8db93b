from __future__ import annotations

import logging
import socket
from typing import Optional, Tuple

from .errors import ConnectionLost, TransportError

logger = logging.getLogger(__name__)


def set_congestion_control(sock: socket.socket, algorithm: Optional[str]) -> None:
    """Select a TCP congestion-control algorithm by name (e.g. "reno", "cubic").

    The name is handed to the kernel as is. None leaves the system default.
    """
    if algorithm is None:
        return
    opt = getattr(socket, "TCP_CONGESTION", None)
    if opt is None:
        raise TransportError("TCP_CONGESTION is not supported on this platform")
    try:
        sock.setsockopt(socket.IPPROTO_TCP, opt, algorithm.encode("ascii"))
    except OSError as exc:
        raise TransportError(f"setsockopt TCP_CONGESTION={algorithm!r} failed: {exc}") from exc
    logger.debug("congestion control set to %s", algorithm)


class TcpConnection:
    """One established stream. Reads come back whole or not at all."""

    def __init__(self, sock: socket.socket, peer: Optional[Tuple[str, int]] = None):
        self.sock = sock
        self.peer = peer

    def send_all(self, data: bytes) -> None:
        try:
            self.sock.sendall(data)
        except TimeoutError as exc:
            raise TransportError("send timed out") from exc
        except OSError as exc:
            raise TransportError(f"send failed: {exc}") from exc

    def recv_exact(self, n: int) -> bytes:
        """Read exactly ``n`` bytes, looping over short reads."""
        buf = bytearray(n)
        view = memoryview(buf)
        got = 0
        while got < n:
            try:
                k = self.sock.recv_into(view[got:], n - got)
            except TimeoutError as exc:
                raise TransportError(f"receive timed out after {got}/{n} bytes") from exc
            except OSError as exc:
                raise ConnectionLost(f"receive failed after {got}/{n} bytes: {exc}") from exc
            if k <= 0:
                if got:
                    raise ConnectionLost(f"peer closed mid-frame after {got}/{n} bytes")
                raise ConnectionLost("peer closed the connection")
            got += k
        return bytes(buf)

    def close(self) -> None:
        self.sock.close()

    def __enter__(self) -> "TcpConnection":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class TcpEndpoint:
    """Listening side. Accepts a single connection per run."""

    def __init__(self, sock: socket.socket, timeout_s: Optional[float] = None):
        self.sock = sock
        self.timeout_s = timeout_s

    @property
    def address(self) -> Tuple[str, int]:
        host, port = self.sock.getsockname()[:2]
        return host, port

    @classmethod
    def listening(
        cls,
        host: str,
        port: int,
        algorithm: Optional[str] = None,
        timeout_s: Optional[float] = None,
    ) -> "TcpEndpoint":
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            set_congestion_control(sock, algorithm)
            sock.bind((host, port))
            sock.listen(1)
        except OSError as exc:
            sock.close()
            raise TransportError(f"cannot listen on {host}:{port}: {exc}") from exc
        except TransportError:
            sock.close()
            raise
        if timeout_s is not None:
            sock.settimeout(timeout_s)
        return cls(sock, timeout_s)

    @staticmethod
    def connect(
        host: str,
        port: int,
        algorithm: Optional[str] = None,
        timeout_s: Optional[float] = None,
    ) -> TcpConnection:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            set_congestion_control(sock, algorithm)
            if timeout_s is not None:
                sock.settimeout(timeout_s)
            sock.connect((host, port))
        except OSError as exc:
            sock.close()
            raise TransportError(f"cannot connect to {host}:{port}: {exc}") from exc
        except TransportError:
            sock.close()
            raise
        logger.info("connected to %s:%d", host, port)
        return TcpConnection(sock, (host, port))

    def accept(self) -> TcpConnection:
        try:
            conn, addr = self.sock.accept()
        except TimeoutError as exc:
            raise TransportError("accept timed out") from exc
        except OSError as exc:
            raise TransportError(f"accept failed: {exc}") from exc
        conn.settimeout(self.timeout_s)
        logger.info("accepted connection from %s:%d", addr[0], addr[1])
        return TcpConnection(conn, addr)

    def close(self) -> None:
        self.sock.close()

    def __enter__(self) -> "TcpEndpoint":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
