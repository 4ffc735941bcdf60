"""
Point cloud unpacking.

Sensor frame payloads carry 12-bit depth samples packed two per three
bytes. For each byte triplet (b0, b1, b2):

    sample[2k]     = b0 | (b1 & 0x0F) << 8
    sample[2k + 1] = (b1 & 0xF0) >> 4 | b2 << 4

Samples are stored row-major, width samples per row.
"""

import time
from dataclasses import dataclass, field
from typing import Dict

import numpy as np

from .constants import SENSOR_WIDTH, SENSOR_HEIGHT, packed_size
from .exceptions import PayloadTooShortError


@dataclass
class PointCloud:
    """
    One decoded sensor frame.

    Attributes:
        data: Depth samples, uint16, shape (height, width)
        sequence_number: Frame counter within the session
        timestamp: Decode time (monotonic clock, seconds)
    """
    data: np.ndarray
    sequence_number: int = 0
    timestamp: float = field(default_factory=time.monotonic)

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def samples(self) -> np.ndarray:
        """Flat row-major view of the samples."""
        return self.data.reshape(-1)

    def stats(self) -> Dict[str, float]:
        """Min, max and mean depth of the frame."""
        return {
            "min": int(self.data.min()),
            "max": int(self.data.max()),
            "mean": float(self.data.mean()),
        }

    def __repr__(self) -> str:
        return (f"PointCloud(#{self.sequence_number}, "
                f"{self.width}x{self.height}, dtype={self.data.dtype})")


class PointCloudDecoder:
    """Unpacks 12-bit sample payloads."""

    @staticmethod
    def decode(
        payload: bytes,
        width: int = SENSOR_WIDTH,
        height: int = SENSOR_HEIGHT
    ) -> np.ndarray:
        """
        Unpack a payload into a depth array.

        Args:
            payload: Packed sample bytes; bytes beyond the last needed
                triplet are ignored
            width: Samples per row
            height: Number of rows

        Returns:
            uint16 array of shape (height, width), values 0-4095

        Raises:
            PayloadTooShortError: If the payload ends before the array is filled
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid resolution {width}x{height}")

        count = width * height
        required = packed_size(width, height)
        if len(payload) < required:
            raise PayloadTooShortError(required, len(payload))

        triplets = (count + 1) // 2
        raw = np.frombuffer(payload, dtype=np.uint8, count=min(len(payload), triplets * 3))
        if raw.size < triplets * 3:
            # Odd sample count: last triplet only carries its even sample
            raw = np.concatenate([raw, np.zeros(triplets * 3 - raw.size, dtype=np.uint8)])

        raw = raw.reshape(triplets, 3).astype(np.uint16)
        b0, b1, b2 = raw[:, 0], raw[:, 1], raw[:, 2]

        samples = np.empty(triplets * 2, dtype=np.uint16)
        samples[0::2] = b0 | ((b1 & 0x0F) << 8)
        samples[1::2] = ((b1 & 0xF0) >> 4) | (b2 << 4)

        return samples[:count].reshape(height, width)

    @staticmethod
    def decode_cloud(
        payload: bytes,
        width: int = SENSOR_WIDTH,
        height: int = SENSOR_HEIGHT,
        sequence_number: int = 0
    ) -> PointCloud:
        """Unpack a payload into a PointCloud."""
        data = PointCloudDecoder.decode(payload, width, height)
        return PointCloud(data=data, sequence_number=sequence_number)
