from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Optional

from .constants import MIB

RULE = "_" * 60


@dataclass(frozen=True, slots=True)
class Sample:
    elapsed_ms: float
    nbytes: int

    @property
    def throughput_mib_s(self) -> float:
        if self.elapsed_ms <= 0:
            return 0.0
        return (self.nbytes / MIB) / (self.elapsed_ms / 1000.0)


@dataclass(frozen=True, slots=True)
class RunStats:
    run: int
    elapsed_ms: float
    nbytes: int
    throughput_mib_s: float


@dataclass(frozen=True, slots=True)
class Summary:
    runs: tuple[RunStats, ...] = ()
    mean_elapsed_ms: Optional[float] = None
    mean_throughput_mib_s: Optional[float] = None

    @property
    def no_data(self) -> bool:
        return not self.runs

    def to_dict(self) -> dict:
        return {
            "runs": [asdict(r) for r in self.runs],
            "mean_elapsed_ms": self.mean_elapsed_ms,
            "mean_throughput_mib_s": self.mean_throughput_mib_s,
            "no_data": self.no_data,
        }

    def format_table(self) -> str:
        lines = [
            RULE,
            "-                     *  statistics  *                     -",
            "-",
        ]
        if self.no_data:
            lines.append("- no data: no transfer completed")
        else:
            for r in self.runs:
                lines.append(
                    f"- Run   #{r.run}  Data: Time = {r.elapsed_ms:.2f} ms;"
                    f"    speed = {r.throughput_mib_s:.2f} MB/s"
                )
            lines.append("-")
            lines.append(f"- Average time:   {self.mean_elapsed_ms:.2f} ms")
            lines.append(f"- Average bandwidth:  {self.mean_throughput_mib_s:.2f} MB/s")
        lines.append(RULE)
        return "\n".join(lines)


@dataclass(slots=True)
class TimingLedger:
    """Elapsed time of every completed file, in arrival order."""

    samples: list[Sample] = field(default_factory=list)

    def append(self, elapsed_ms: float, nbytes: int) -> None:
        if elapsed_ms < 0:
            raise ValueError(f"negative elapsed time: {elapsed_ms}")
        self.samples.append(Sample(elapsed_ms=elapsed_ms, nbytes=nbytes))

    def count(self) -> int:
        return len(self.samples)

    def __len__(self) -> int:
        return len(self.samples)

    def report(self) -> Summary:
        if not self.samples:
            return Summary()

        runs = tuple(
            RunStats(
                run=i,
                elapsed_ms=s.elapsed_ms,
                nbytes=s.nbytes,
                throughput_mib_s=s.throughput_mib_s,
            )
            for i, s in enumerate(self.samples, start=1)
        )
        n = len(runs)
        return Summary(
            runs=runs,
            mean_elapsed_ms=sum(r.elapsed_ms for r in runs) / n,
            mean_throughput_mib_s=sum(r.throughput_mib_s for r in runs) / n,
        )
