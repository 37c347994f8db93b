from __future__ import annotations

import socket

import pytest

from ccbench.net import TcpConnection


@pytest.fixture
def pair():
    a, b = socket.socketpair()
    left, right = TcpConnection(a), TcpConnection(b)
    yield left, right
    left.close()
    right.close()
