"""Shared test fixtures: an in-memory transport with scripted reads."""

from __future__ import annotations

import pytest

from sequences.tof_stream.libs.tof_protocol.exceptions import ReadTimeoutError
from sequences.tof_stream.libs.tof_protocol.transport import BaseTransport


class FakeTransport(BaseTransport):
    """Transport stub.

    Each read_exact call pops the next scripted item: bytes are returned,
    exceptions are raised. Once the script is exhausted every read times
    out. Writes are recorded.
    """

    def __init__(self, reads=None, on_read=None) -> None:
        self.reads = list(reads or [])
        self.on_read = on_read
        self.writes: list[bytes] = []
        self.read_calls: list[tuple[int, float]] = []
        self.flushed = 0
        self._open = False
        self.write_error: Exception | None = None

    def open(self) -> None:
        self._open = True

    def close(self) -> None:
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def write(self, data: bytes) -> int:
        if self.write_error is not None:
            raise self.write_error
        self.writes.append(bytes(data))
        return len(data)

    def read_exact(self, size: int, timeout: float) -> bytes:
        self.read_calls.append((size, timeout))
        if self.on_read is not None:
            self.on_read(len(self.read_calls))
        if not self.reads:
            raise ReadTimeoutError(timeout, 0, size)
        item = self.reads.pop(0)
        if isinstance(item, Exception):
            raise item
        assert len(item) == size, f"scripted read of {len(item)} bytes, asked for {size}"
        return item

    def flush(self) -> None:
        self.flushed += 1


@pytest.fixture
def fake_transport():
    return FakeTransport()
