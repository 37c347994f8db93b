from __future__ import annotations


class BenchError(Exception):
    """Base class for every fatal session error."""


class TransportError(BenchError):
    """send/connect/bind/listen/accept failed, or a socket timeout expired."""


class ConnectionLost(BenchError):
    """Peer closed the connection, or a read failed, before a frame completed."""


class MalformedFrame(BenchError, ValueError):
    """A block could not be decoded as a frame."""


class ProtocolViolation(BenchError):
    """A frame arrived that the current session state does not admit."""


__all__ = [
    "BenchError",
    "TransportError",
    "ConnectionLost",
    "MalformedFrame",
    "ProtocolViolation",
]
