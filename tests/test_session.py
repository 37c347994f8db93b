from __future__ import annotations

import threading

import pytest

from ccbench import bench as bench_mod
from ccbench import receiver as receiver_mod
from ccbench.bench import run_benchmark
from ccbench.config import ReceiverConfig
from ccbench.packet import FrameCodec
from ccbench.receiver import Event, ReceiverSession, SessionState
from ccbench.sender import Sender


def run_sender(target):
    errors = []

    def wrapper():
        try:
            target()
        except Exception as exc:  # surfaced through the assertion below
            errors.append(exc)

    t = threading.Thread(target=wrapper, daemon=True)
    t.start()
    return t, errors


def test_single_large_file(pair, tmp_path, monkeypatch):
    left, right = pair
    src = tmp_path / "random_file.txt"
    data = bytes(i % 251 for i in range(2_500_000))
    src.write_bytes(data)
    out = tmp_path / "out"
    out.mkdir()

    seen = []
    classify = receiver_mod.classify

    def spy(frame):
        event = classify(frame)
        seen.append(frame.length if event is Event.DATA else event.value)
        return event

    monkeypatch.setattr(receiver_mod, "classify", spy)

    codec = FrameCodec(1_048_576)
    t, errors = run_sender(lambda: Sender(codec).run(left, [str(src)]))
    session = ReceiverSession(right, ReceiverConfig(capacity=1_048_576, out_dir=out))
    ledger = session.run()
    t.join(timeout=10)

    assert errors == []
    assert seen == ["START", 1_048_576, 1_048_576, 402_848, "END", "EXIT"]
    assert session.state is SessionState.CLOSED
    assert ledger.count() == 1
    assert ledger.samples[0].nbytes == 2_500_000
    assert (out / "receive_file0.txt").read_bytes() == data


def test_repeat_then_done(pair, tmp_path):
    left, right = pair
    a = tmp_path / "a.txt"
    b = tmp_path / "b.txt"
    a.write_bytes(b"A" * 1000)
    b.write_bytes(b"B" * 300)
    out = tmp_path / "out"
    out.mkdir()

    def send():
        s = Sender(FrameCodec(256))
        with open(a, "rb") as f:
            s.send_file(left, f)
        s.signal_repeat(left)
        with open(b, "rb") as f:
            s.send_file(left, f)
        s.signal_done(left)
        left.close()

    t, errors = run_sender(send)
    session = ReceiverSession(right, ReceiverConfig(capacity=256, out_dir=out))
    ledger = session.run()
    t.join(timeout=10)

    assert errors == []
    assert session.state is SessionState.CLOSED
    assert ledger.count() == 2
    assert session.completed == [out / "receive_file0.txt", out / "receive_file1.txt"]
    assert (out / "receive_file0.txt").read_bytes() == b"A" * 1000
    assert (out / "receive_file1.txt").read_bytes() == b"B" * 300


def test_loopback_benchmark(tmp_path):
    r = run_benchmark(size_bytes=200_000, runs=2, capacity=65536, out_dir=str(tmp_path))
    assert r.runs == 2
    assert len(r.summary.runs) == 2
    assert all(run.nbytes == 200_000 for run in r.summary.runs)
    assert r.summary.mean_elapsed_ms >= 0
    assert sorted(p.name for p in tmp_path.iterdir()) == ["receive_file0.txt", "receive_file1.txt"]
    assert r.to_dict()["bytes_per_run"] == 200_000


def test_benchmark_needs_a_run():
    with pytest.raises(ValueError):
        run_benchmark(size_bytes=10, runs=0)


def test_benchmark_surfaces_receiver_failure(monkeypatch):
    def failing_serve(endpoint, config):
        with endpoint.accept() as conn:
            while conn.sock.recv(65536):
                pass
        raise OSError("no space left on device")

    monkeypatch.setattr(bench_mod, "serve", failing_serve)
    with pytest.raises(OSError, match="no space left"):
        run_benchmark(size_bytes=1000, runs=1, capacity=256, timeout_s=10)
