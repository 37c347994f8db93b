from __future__ import annotations

import logging
import os
import random
import string
from typing import Optional

from .constants import GEN_LINE_LENGTH, GEN_LINES, MIB

logger = logging.getLogger(__name__)


def generate_file(
    path: str,
    lines: int = GEN_LINES,
    line_length: int = GEN_LINE_LENGTH,
    seed: Optional[int] = None,
) -> int:
    """Write ``lines`` lines of random uppercase letters and return the file size."""
    rng = random.Random(seed)
    with open(path, "w", encoding="ascii", newline="\n") as f:
        for _ in range(lines):
            f.write("".join(rng.choices(string.ascii_uppercase, k=line_length)))
            f.write("\n")
    size = os.path.getsize(path)
    logger.info("random text file generated at %s (size - %.2f MB)", path, size / MIB)
    return size


def generate_bytes(path: str, size_bytes: int, seed: Optional[int] = None) -> int:
    """Write exactly ``size_bytes`` bytes of generator text (last line may be cut short)."""
    rng = random.Random(seed)
    line = GEN_LINE_LENGTH + 1
    remaining = size_bytes
    with open(path, "wb") as f:
        while remaining > 0:
            n = min(line, remaining)
            body = "".join(rng.choices(string.ascii_uppercase, k=min(n, GEN_LINE_LENGTH)))
            if n == line:
                body += "\n"
            f.write(body.encode("ascii"))
            remaining -= n
    return size_bytes
