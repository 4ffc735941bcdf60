"""
Frame parsing and building.

Frame Format: [HEADER x3][SIZE x2][PAYLOAD...][CHECKSUM]
- HEADER: 0x5A 0x77 0xFF
- SIZE: Payload length, little-endian uint16
- PAYLOAD: Command opcode block or sensor frame data
- CHECKSUM: XOR of SIZE + PAYLOAD

Frames carry no delimiter or escaping; the boundary is defined by the
byte count the caller expects.
"""

from dataclasses import dataclass

from .checksum import XORChecksum
from .constants import HEADER, HEADER_SIZE, FRAME_OVERHEAD, MAX_PAYLOAD, Command
from .exceptions import (
    BadMagicError, BadSizeError, ChecksumError, PayloadTooLargeError
)


@dataclass(frozen=True)
class Frame:
    """Protocol frame structure."""
    header: bytes
    size: int
    payload: bytes
    checksum: int

    def __post_init__(self):
        if isinstance(self.payload, (bytearray, memoryview, list, tuple)):
            object.__setattr__(self, "payload", bytes(self.payload))
        if self.header != HEADER:
            raise BadMagicError(self.header)
        if len(self.payload) > MAX_PAYLOAD:
            raise PayloadTooLargeError(len(self.payload))
        if self.size != len(self.payload):
            raise BadSizeError(len(self.payload), self.size)
        expected = XORChecksum.calculate(_size_field(self.size) + self.payload)
        if self.checksum != expected:
            raise ChecksumError(expected, self.checksum)

    def __repr__(self) -> str:
        if self.size > 16:
            body = f"{self.payload[:16].hex(' ')} ..."
        else:
            body = self.payload.hex(' ') if self.payload else "(empty)"
        return f"Frame(size={self.size}, payload={body}, checksum=0x{self.checksum:02X})"


def _size_field(size: int) -> bytes:
    return size.to_bytes(2, "little")


class FrameBuilder:
    """Builds frames for transmission."""

    @staticmethod
    def encode(payload: bytes) -> Frame:
        """
        Wrap a payload in a frame.

        Args:
            payload: Payload bytes (at most 65535)

        Returns:
            Frame with header, size and checksum filled in

        Raises:
            PayloadTooLargeError: If the payload does not fit the size field
        """
        payload = bytes(payload)
        size = len(payload)
        if size > MAX_PAYLOAD:
            raise PayloadTooLargeError(size)

        checksum = XORChecksum.calculate(_size_field(size) + payload)
        return Frame(HEADER, size, payload, checksum)

    @staticmethod
    def to_wire(frame: Frame) -> bytes:
        """Serialize frame as header + size + payload + checksum."""
        return frame.header + _size_field(frame.size) + frame.payload + bytes([frame.checksum])

    @staticmethod
    def build(payload: bytes) -> bytes:
        """Build complete wire bytes for a payload."""
        return FrameBuilder.to_wire(FrameBuilder.encode(payload))

    @staticmethod
    def build_set_baud() -> bytes:
        """Build SET_BAUD command frame."""
        return FrameBuilder.build(Command.SET_BAUD.value)

    @staticmethod
    def build_query_device_info() -> bytes:
        """Build QUERY_DEVICE_INFO command frame."""
        return FrameBuilder.build(Command.QUERY_DEVICE_INFO.value)

    @staticmethod
    def build_start_stream() -> bytes:
        """Build START_STREAM command frame."""
        return FrameBuilder.build(Command.START_STREAM.value)

    @staticmethod
    def build_stop_stream() -> bytes:
        """Build STOP_STREAM command frame."""
        return FrameBuilder.build(Command.STOP_STREAM.value)


class FrameParser:
    """Validates received frames."""

    @staticmethod
    def decode(data: bytes, expected_payload_size: int) -> Frame:
        """
        Parse and validate one complete frame.

        Args:
            data: Exactly expected_payload_size + 6 bytes read from the wire
            expected_payload_size: Payload size the caller is waiting for

        Returns:
            Validated Frame

        Raises:
            BadMagicError: If the header does not match
            BadSizeError: If the size field or buffer length is not as expected
            ChecksumError: If the trailing checksum byte does not match
        """
        data = bytes(data)

        if data[:HEADER_SIZE] != HEADER:
            raise BadMagicError(data[:HEADER_SIZE])

        if len(data) != expected_payload_size + FRAME_OVERHEAD:
            raise BadSizeError(
                expected_payload_size, len(data) - FRAME_OVERHEAD
            )

        # Checksum covers SIZE + PAYLOAD, so a corrupted size field is
        # reported as a checksum failure
        checksum_data = data[HEADER_SIZE:-1]
        calc_checksum = XORChecksum.calculate(checksum_data)
        recv_checksum = data[-1]

        if calc_checksum != recv_checksum:
            raise ChecksumError(calc_checksum, recv_checksum)

        size = int.from_bytes(data[HEADER_SIZE:HEADER_SIZE + 2], "little")
        if size != expected_payload_size:
            raise BadSizeError(expected_payload_size, size)

        payload = data[HEADER_SIZE + 2:-1]
        return Frame(HEADER, size, payload, recv_checksum)
