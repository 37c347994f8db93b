from __future__ import annotations

import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import ReceiverConfig, SenderConfig
from .constants import DEFAULT_CAPACITY
from .errors import BenchError, TransportError
from .gen import generate_bytes
from .ledger import Summary
from .net import TcpEndpoint
from .packet import FrameCodec
from .receiver import ReceiverSession, serve
from .sender import Sender

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BenchmarkResult:
    algorithm: Optional[str]
    bytes_per_run: int
    runs: int
    summary: Summary

    def to_dict(self) -> dict:
        return {
            "algorithm": self.algorithm,
            "bytes_per_run": self.bytes_per_run,
            "runs": self.runs,
            **self.summary.to_dict(),
        }


def run_benchmark(
    *,
    size_bytes: int,
    runs: int = 1,
    algorithm: Optional[str] = None,
    capacity: int = DEFAULT_CAPACITY,
    out_dir: Optional[str] = None,
    timeout_s: Optional[float] = 30.0,
) -> BenchmarkResult:
    """Send a generated file ``runs`` times over loopback and time each transfer."""
    if runs < 1:
        raise ValueError(f"runs must be at least 1, got {runs}")

    with tempfile.TemporaryDirectory() as tmp:
        out = Path(out_dir) if out_dir else Path(tmp) / "out"
        out.mkdir(parents=True, exist_ok=True)
        src = os.path.join(tmp, "random_file.txt")
        generate_bytes(src, size_bytes)

        recv_cfg = ReceiverConfig(
            listen_host="127.0.0.1",
            port=0,
            algorithm=algorithm,
            capacity=capacity,
            timeout_s=timeout_s,
            out_dir=out,
        )
        endpoint = TcpEndpoint.listening(
            recv_cfg.listen_host, recv_cfg.port, algorithm=algorithm, timeout_s=timeout_s
        )
        host, port = endpoint.address

        holder: dict = {}

        def recv_runner() -> None:
            try:
                holder["session"] = serve(endpoint, recv_cfg)
            except Exception as exc:  # re-raised in the caller thread
                holder["error"] = exc
            finally:
                endpoint.close()

        t = threading.Thread(target=recv_runner, daemon=True)
        t.start()

        send_cfg = SenderConfig(
            host=host, port=port, algorithm=algorithm, capacity=capacity, timeout_s=timeout_s
        )
        with TcpEndpoint.connect(
            send_cfg.host, send_cfg.port, algorithm=send_cfg.algorithm, timeout_s=send_cfg.timeout_s
        ) as conn:
            Sender(FrameCodec(send_cfg.capacity)).run(conn, [src] * runs)

        t.join(timeout=timeout_s)
        if t.is_alive():
            raise TransportError("receiver did not finish in time")
        if "error" in holder:
            raise holder["error"]

        session: ReceiverSession = holder["session"]
        for path in session.completed:
            actual = os.path.getsize(path)
            if actual != size_bytes:
                raise BenchError(f"{path}: expected {size_bytes} bytes, got {actual}")

    return BenchmarkResult(
        algorithm=algorithm,
        bytes_per_run=size_bytes,
        runs=runs,
        summary=session.ledger.report(),
    )
