from __future__ import annotations

import io

import pytest

from ccbench.errors import TransportError
from ccbench.packet import ControlToken, FrameCodec, FrameKind
from ccbench.sender import Sender


class Recorder:
    def __init__(self):
        self.blocks = []

    def send_all(self, data):
        self.blocks.append(data)


class Broken:
    def send_all(self, data):
        raise TransportError("send failed: broken pipe")


def decoded(codec, conn):
    assert all(len(b) == codec.size for b in conn.blocks)
    return [codec.decode(b) for b in conn.blocks]


def describe(frames):
    return [f.token.value if f.kind is FrameKind.CONTROL else f.length for f in frames]


def test_chunks_bracketed_by_start_end():
    codec = FrameCodec(1_048_576)
    conn = Recorder()
    data = bytes(range(256)) * (2_500_000 // 256) + b"\x01" * (2_500_000 % 256)

    stats = Sender(codec).send_file(conn, io.BytesIO(data))

    frames = decoded(codec, conn)
    assert describe(frames) == ["START", 1_048_576, 1_048_576, 402_848, "END"]
    assert b"".join(f.payload for f in frames[1:-1]) == data
    assert stats.frames_sent == 3
    assert stats.bytes_sent == 2_500_000
    assert stats.end_ts is not None


def test_exact_multiple_emits_no_empty_frame():
    codec = FrameCodec(10)
    conn = Recorder()
    Sender(codec).send_file(conn, io.BytesIO(b"x" * 20))
    assert describe(decoded(codec, conn)) == ["START", 10, 10, "END"]


def test_empty_file():
    codec = FrameCodec(10)
    conn = Recorder()
    stats = Sender(codec).send_file(conn, io.BytesIO(b""))
    assert describe(decoded(codec, conn)) == ["START", "END"]
    assert stats.bytes_sent == 0


def test_signals():
    codec = FrameCodec(16)
    conn = Recorder()
    s = Sender(codec)
    s.signal_repeat(conn)
    s.signal_done(conn)
    assert [f.token for f in decoded(codec, conn)] == [ControlToken.SEND_AGAIN, ControlToken.EXIT]


def test_run_sends_files_then_exit(tmp_path):
    a = tmp_path / "a.bin"
    b = tmp_path / "b.bin"
    a.write_bytes(b"0123456789abcdef")
    b.write_bytes(b"xy")
    codec = FrameCodec(10)
    conn = Recorder()

    results = Sender(codec).run(conn, [str(a), str(b)])

    assert describe(decoded(codec, conn)) == [
        "START", 10, 6, "END", "SEND_AGAIN", "START", 2, "END", "EXIT",
    ]
    assert [r.bytes_sent for r in results] == [16, 2]


def test_write_failure_propagates():
    with pytest.raises(TransportError):
        Sender(FrameCodec(10)).send_file(Broken(), io.BytesIO(b"abc"))
