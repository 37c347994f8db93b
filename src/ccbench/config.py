from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .constants import (
    DEFAULT_ALGORITHM,
    DEFAULT_CAPACITY,
    DEFAULT_FILE_PREFIX,
    DEFAULT_FILE_SUFFIX,
    DEFAULT_OUT_DIR,
    DEFAULT_PORT,
)


@dataclass(frozen=True, slots=True)
class SenderConfig:
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    # Passed to TCP_CONGESTION untouched; None keeps the OS default.
    algorithm: Optional[str] = DEFAULT_ALGORITHM
    capacity: int = DEFAULT_CAPACITY
    timeout_s: Optional[float] = None


@dataclass(frozen=True, slots=True)
class ReceiverConfig:
    listen_host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    algorithm: Optional[str] = DEFAULT_ALGORITHM
    capacity: int = DEFAULT_CAPACITY
    timeout_s: Optional[float] = None
    out_dir: Path = Path(DEFAULT_OUT_DIR)
    file_prefix: str = DEFAULT_FILE_PREFIX
    file_suffix: str = DEFAULT_FILE_SUFFIX

    def output_path(self, seq: int) -> Path:
        return Path(self.out_dir) / f"{self.file_prefix}{seq}{self.file_suffix}"
