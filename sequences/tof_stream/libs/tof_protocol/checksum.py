"""
Frame checksum.

XOR fold over the size field and payload bytes. Header and checksum byte
are not covered.
"""

from functools import reduce
from operator import xor


class XORChecksum:
    """8-bit XOR checksum."""

    @staticmethod
    def calculate(data: bytes) -> int:
        """
        Calculate checksum of data.

        Args:
            data: Bytes to fold (size field + payload)

        Returns:
            Checksum value (0-255)
        """
        return reduce(xor, data, 0)
