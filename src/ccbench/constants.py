from __future__ import annotations

FRAME_FORMAT = "!B{capacity}sQ"  # kind, payload padded to capacity, length

FILE_DATA = 0
CONTROL = 1

DEFAULT_CAPACITY = 1024 * 1024
DEFAULT_PORT = 5060
DEFAULT_ALGORITHM = "cubic"
DEFAULT_OUT_DIR = "assets"
DEFAULT_FILE_PREFIX = "receive_file"
DEFAULT_FILE_SUFFIX = ".txt"

GEN_LINES = 2000
GEN_LINE_LENGTH = 3001

MIB = 1024 * 1024
