"""
Serial transport layer.

Provides blocking, exact-length reads over a serial port. Bytes received
before a read times out are kept, so the next read continues the same
frame instead of dropping part of the stream.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

import serial

from .constants import DEFAULT_PORT, DEFAULT_BAUDRATE
from .exceptions import TransportError, ReadTimeoutError

logger = logging.getLogger(__name__)


class BaseTransport(ABC):
    """
    Abstract byte channel the protocol runs over.

    Implementations must provide exact-length reads: read_exact either
    returns exactly the requested number of bytes or raises.
    """

    @abstractmethod
    def open(self) -> None:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    @property
    @abstractmethod
    def is_open(self) -> bool:
        ...

    @abstractmethod
    def write(self, data: bytes) -> int:
        """
        Send data.

        Raises:
            TransportError: If the write fails
        """
        ...

    @abstractmethod
    def read_exact(self, size: int, timeout: float) -> bytes:
        """
        Read exactly size bytes.

        Args:
            size: Number of bytes to return
            timeout: Bound for this attempt in seconds

        Raises:
            ReadTimeoutError: If size bytes did not arrive within timeout
            TransportError: On any other read failure
        """
        ...

    @abstractmethod
    def flush(self) -> None:
        """Wait until all written data has been sent."""
        ...

    def __enter__(self) -> 'BaseTransport':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class SerialTransport(BaseTransport):
    """Serial communication transport layer."""

    def __init__(
        self,
        port: str = DEFAULT_PORT,
        baudrate: int = DEFAULT_BAUDRATE,
    ):
        """
        Initialize serial transport.

        Args:
            port: Serial port name (e.g., '/dev/ttyUSB0' or 'COM3')
            baudrate: Baud rate (default: 3000000)
        """
        self.port = port
        self.baudrate = baudrate
        self._serial: Optional[serial.Serial] = None
        self._pending = bytearray()

    def open(self) -> None:
        """Open serial port (8N1, no flow control)."""
        try:
            self._serial = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                xonxoff=False,
                rtscts=False,
                dsrdtr=False,
            )
            self._pending = bytearray()
            logger.info(f"Opened serial port {self.port} at {self.baudrate} bps")
        except serial.SerialException as e:
            raise TransportError(f"Failed to open {self.port}: {e}") from e

    def close(self) -> None:
        """Close serial port."""
        if self._serial:
            try:
                self._serial.close()
            except serial.SerialException as e:
                logger.warning(f"Error closing {self.port}: {e}")
            self._serial = None
            logger.info(f"Closed serial port {self.port}")

    def write(self, data: bytes) -> int:
        """
        Send data over serial port.

        Args:
            data: Bytes to send

        Returns:
            Number of bytes sent

        Raises:
            TransportError: If port is not open or the write fails
        """
        port = self._require_open()

        try:
            count = port.write(data)
            logger.debug(f"TX ({count} bytes): {data.hex(' ')}")
            return count
        except serial.SerialException as e:
            raise TransportError(f"Send failed: {e}") from e

    def read_exact(self, size: int, timeout: float) -> bytes:
        """
        Read exactly size bytes within timeout.

        Bytes already received by a previous timed-out call count towards
        this read.
        """
        port = self._require_open()
        deadline = time.monotonic() + timeout

        # Assigning timeout reconfigures the tty, so only do it once per call
        if port.timeout != timeout:
            try:
                port.timeout = timeout
            except serial.SerialException as e:
                raise TransportError(f"Receive failed: {e}") from e

        while len(self._pending) < size:
            if time.monotonic() >= deadline:
                raise ReadTimeoutError(timeout, len(self._pending), size)

            try:
                chunk = port.read(size - len(self._pending))
            except serial.SerialException as e:
                raise TransportError(f"Receive failed: {e}") from e

            if chunk:
                self._pending.extend(chunk)

        data = bytes(self._pending[:size])
        del self._pending[:size]
        logger.debug(f"RX ({size} bytes)")
        return data

    def flush(self) -> None:
        """Flush output buffer."""
        port = self._require_open()
        try:
            port.flush()
        except serial.SerialException as e:
            raise TransportError(f"Flush failed: {e}") from e

    @property
    def is_open(self) -> bool:
        """Check if port is open."""
        return self._serial is not None and self._serial.is_open

    def _require_open(self) -> serial.Serial:
        if not self.is_open:
            raise TransportError("Serial port not open")
        return self._serial

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"SerialTransport({self.port}, {self.baudrate}, {status})"
