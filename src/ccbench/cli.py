from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional

from .bench import run_benchmark
from .config import ReceiverConfig, SenderConfig
from .constants import (
    DEFAULT_ALGORITHM,
    DEFAULT_CAPACITY,
    DEFAULT_OUT_DIR,
    DEFAULT_PORT,
    GEN_LINE_LENGTH,
    GEN_LINES,
)
from .errors import BenchError
from .gen import generate_file
from .net import TcpEndpoint
from .packet import MIN_CAPACITY, FrameCodec
from .receiver import serve
from .sender import Sender

DEFAULT_INPUT = "random_file.txt"
DEFAULT_BENCH_TIMEOUT = 60.0


def _algorithm(value: str) -> Optional[str]:
    # "default" keeps whatever the kernel is configured with
    return None if value == "default" else value


def cmd_recv(args: argparse.Namespace) -> int:
    config = ReceiverConfig(
        listen_host=args.listen_host,
        port=args.port,
        algorithm=_algorithm(args.algo),
        capacity=args.capacity,
        timeout_s=args.timeout,
        out_dir=Path(args.out_dir),
    )
    config.out_dir.mkdir(parents=True, exist_ok=True)

    logging.info("starting receiver on %s:%d (algo=%s)", config.listen_host, config.port, args.algo)
    with TcpEndpoint.listening(
        config.listen_host, config.port, algorithm=config.algorithm, timeout_s=config.timeout_s
    ) as endpoint:
        session = serve(endpoint, config)

    summary = session.ledger.report()
    if args.json:
        print(json.dumps({"role": "receiver", "algorithm": args.algo, **summary.to_dict()}, indent=2))
    else:
        print(summary.format_table())
    logging.info("receiver end")
    return 0


def cmd_send(args: argparse.Namespace) -> int:
    config = SenderConfig(
        host=args.host,
        port=args.port,
        algorithm=_algorithm(args.algo),
        capacity=args.capacity,
        timeout_s=args.timeout,
    )
    files = args.file or [DEFAULT_INPUT]
    if args.generate:
        for path in files:
            generate_file(path)

    sender = Sender(FrameCodec(config.capacity))
    with TcpEndpoint.connect(
        config.host, config.port, algorithm=config.algorithm, timeout_s=config.timeout_s
    ) as conn:
        results = sender.run(conn, files * args.repeat)

    payload = {
        "role": "sender",
        "algorithm": args.algo,
        "files": [
            {
                "bytes": r.bytes_sent,
                "frames": r.frames_sent,
                "seconds": r.duration_s,
                "mib_s": r.throughput_mib_s,
            }
            for r in results
        ],
    }
    print(json.dumps(payload, indent=2) if args.json else payload)
    return 0


def cmd_gen(args: argparse.Namespace) -> int:
    size = generate_file(args.out, lines=args.lines, line_length=args.line_length, seed=args.seed)
    print(json.dumps({"path": args.out, "bytes": size}) if args.json else f"{args.out}: {size} bytes")
    return 0


def cmd_bench(args: argparse.Namespace) -> int:
    r = run_benchmark(
        size_bytes=args.size_bytes,
        runs=args.runs,
        algorithm=_algorithm(args.algo),
        capacity=args.capacity,
        out_dir=args.out_dir,
        timeout_s=args.timeout,
    )
    if args.json:
        print(json.dumps({"role": "bench", **r.to_dict()}, indent=2))
    else:
        print(r.summary.format_table())
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ccbench", description="TCP file-transfer benchmark for congestion-control algorithms."
    )
    p.add_argument(
        "--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(x: argparse.ArgumentParser) -> None:
        x.add_argument("--algo", default=DEFAULT_ALGORITHM, help='e.g. reno, cubic; "default" keeps the OS setting')
        x.add_argument("--capacity", type=int, default=DEFAULT_CAPACITY, help="frame payload size in bytes")
        x.add_argument("--timeout", type=float, default=None, help="socket timeout in seconds")
        x.add_argument("--json", action="store_true")

    recv = sub.add_parser("recv", help="accept one sender and write the files it sends")
    add_common(recv)
    recv.add_argument("--listen-host", default="0.0.0.0")
    recv.add_argument("-p", "--port", type=int, default=DEFAULT_PORT)
    recv.add_argument("--out-dir", default=DEFAULT_OUT_DIR)
    recv.set_defaults(func=cmd_recv)

    send = sub.add_parser("send", help="send one or more files to a receiver")
    add_common(send)
    send.add_argument("--host", "--ip", dest="host", required=True)
    send.add_argument("-p", "--port", type=int, default=DEFAULT_PORT)
    send.add_argument("--file", action="append", help=f"file to send (repeatable, default {DEFAULT_INPUT})")
    send.add_argument("--repeat", type=int, default=1, help="send the file list this many times")
    send.add_argument("--generate", action="store_true", help="generate the input file(s) first")
    send.set_defaults(func=cmd_send)

    gen = sub.add_parser("gen", help="generate a random text file")
    gen.add_argument("--out", default=DEFAULT_INPUT)
    gen.add_argument("--lines", type=int, default=GEN_LINES)
    gen.add_argument("--line-length", type=int, default=GEN_LINE_LENGTH)
    gen.add_argument("--seed", type=int, default=None)
    gen.add_argument("--json", action="store_true")
    gen.set_defaults(func=cmd_gen)

    bench = sub.add_parser("bench", help="loopback benchmark in a single process")
    add_common(bench)
    bench.add_argument("--size-bytes", type=int, default=GEN_LINES * (GEN_LINE_LENGTH + 1))
    bench.add_argument("--runs", type=int, default=5)
    bench.add_argument("--out-dir", default=None)
    bench.set_defaults(func=cmd_bench, timeout=DEFAULT_BENCH_TIMEOUT)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "repeat", 1) < 1:
        parser.error("--repeat must be at least 1")
    if getattr(args, "capacity", MIN_CAPACITY) < MIN_CAPACITY:
        parser.error(f"--capacity must be at least {MIN_CAPACITY}")
    if getattr(args, "runs", 1) < 1:
        parser.error("--runs must be at least 1")
    if getattr(args, "size_bytes", 0) < 0:
        parser.error("--size-bytes must not be negative")
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(message)s")

    try:
        return int(args.func(args))
    except BenchError as exc:
        logging.error("%s: %s", type(exc).__name__, exc)
        return 1
    except OSError as exc:
        logging.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
