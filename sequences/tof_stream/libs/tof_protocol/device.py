"""
Device information reply.

The sensor answers QUERY_DEVICE_INFO with a 7-byte payload. Its field
layout is not documented, so the bytes are kept as received.
"""

from dataclasses import dataclass

from .constants import DEVICE_INFO_PAYLOAD_SIZE
from .exceptions import BadSizeError
from .frame import Frame


@dataclass(frozen=True)
class DeviceInfo:
    """Raw device information."""
    raw: bytes

    @classmethod
    def from_frame(cls, frame: Frame) -> 'DeviceInfo':
        """Build from a QUERY_DEVICE_INFO reply frame."""
        if len(frame.payload) != DEVICE_INFO_PAYLOAD_SIZE:
            raise BadSizeError(DEVICE_INFO_PAYLOAD_SIZE, len(frame.payload))
        return cls(frame.payload)

    def hex(self) -> str:
        return self.raw.hex(' ')

    def __repr__(self) -> str:
        return f"DeviceInfo({self.hex()})"
