from __future__ import annotations

import string

from ccbench.gen import generate_bytes, generate_file


def test_generate_file(tmp_path):
    p = tmp_path / "random_file.txt"
    size = generate_file(str(p), lines=4, line_length=10, seed=3)
    assert size == 44
    lines = p.read_text().split("\n")
    assert lines[-1] == ""
    assert all(len(line) == 10 and set(line) <= set(string.ascii_uppercase) for line in lines[:-1])


def test_generate_file_is_seeded(tmp_path):
    a = tmp_path / "a"
    b = tmp_path / "b"
    generate_file(str(a), lines=3, line_length=50, seed=7)
    generate_file(str(b), lines=3, line_length=50, seed=7)
    assert a.read_bytes() == b.read_bytes()


def test_generate_bytes_exact_size(tmp_path):
    p = tmp_path / "payload"
    assert generate_bytes(str(p), 10_000) == 10_000
    assert p.stat().st_size == 10_000
    assert p.read_bytes()[3001:3002] == b"\n"
