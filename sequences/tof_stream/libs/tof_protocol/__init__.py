"""
ToF Protocol - Python implementation of the ToF depth sensor serial protocol.

This package provides:
- Protocol constants and command payloads
- XOR checksum calculation
- Frame parsing and building
- Serial transport layer
- Retrying frame reader
- 12-bit point cloud unpacking
- Device session state machine
"""

from .constants import (
    HEADER, MAX_PAYLOAD, SENSOR_WIDTH, SENSOR_HEIGHT,
    SENSOR_FRAME_PAYLOAD_SIZE, DEVICE_INFO_PAYLOAD_SIZE,
    Command
)
from .checksum import XORChecksum
from .exceptions import (
    TofProtocolError, TransportError, ReadTimeoutError,
    FrameError, BadMagicError, BadSizeError, ChecksumError,
    PayloadTooLargeError, PayloadTooShortError,
    SessionStateError, StreamCancelled
)
from .frame import Frame, FrameBuilder, FrameParser
from .transport import BaseTransport, SerialTransport
from .reader import FrameReader
from .pointcloud import PointCloud, PointCloudDecoder
from .device import DeviceInfo
from .session import DeviceSession, SessionState

__version__ = "1.0.0"
__all__ = [
    # Constants
    "HEADER", "MAX_PAYLOAD", "SENSOR_WIDTH", "SENSOR_HEIGHT",
    "SENSOR_FRAME_PAYLOAD_SIZE", "DEVICE_INFO_PAYLOAD_SIZE",
    "Command",
    # Checksum
    "XORChecksum",
    # Exceptions
    "TofProtocolError", "TransportError", "ReadTimeoutError",
    "FrameError", "BadMagicError", "BadSizeError", "ChecksumError",
    "PayloadTooLargeError", "PayloadTooShortError",
    "SessionStateError", "StreamCancelled",
    # Frame
    "Frame", "FrameBuilder", "FrameParser",
    # Transport
    "BaseTransport", "SerialTransport",
    # Reader
    "FrameReader",
    # Point cloud
    "PointCloud", "PointCloudDecoder",
    # Device
    "DeviceInfo",
    # Session
    "DeviceSession", "SessionState",
]
