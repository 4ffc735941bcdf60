"""
Protocol constants matching the sensor firmware.

All multi-byte fields on the wire are little-endian.
"""

from enum import Enum

# Frame header magic
HEADER = b"\x5A\x77\xFF"
HEADER_SIZE = len(HEADER)

# Header + size field + checksum byte
FRAME_OVERHEAD = HEADER_SIZE + 2 + 1

# Largest payload the 16-bit size field can describe
MAX_PAYLOAD = 0xFFFF

# Sensor resolution (fixed by the device)
SENSOR_WIDTH = 160
SENSOR_HEIGHT = 60
SAMPLE_BITS = 12
SAMPLE_MAX = (1 << SAMPLE_BITS) - 1


def packed_size(width: int, height: int) -> int:
    """Bytes needed to carry width*height packed 12-bit samples."""
    return -(-width * height * SAMPLE_BITS // 8)


# Sensor frame payload: packed samples plus one trailer byte
DEVICE_INFO_PAYLOAD_SIZE = 7
SENSOR_FRAME_PAYLOAD_SIZE = packed_size(SENSOR_WIDTH, SENSOR_HEIGHT) + 1

# Serial defaults
DEFAULT_PORT = "/dev/ttyUSB0"
DEFAULT_BAUDRATE = 3_000_000

# Timing (seconds)
READ_ATTEMPT_TIMEOUT = 0.13
FRAME_DELAY = 0.02
SETTLE_DELAY = 1.0


class Command(Enum):
    """Fixed command payloads (Host -> Sensor)."""
    SET_BAUD = b"\x12\x55"
    QUERY_DEVICE_INFO = b"\x10\x00"
    START_STREAM = b"\x08\x00"
    STOP_STREAM = b"\x02\x00\x00"
