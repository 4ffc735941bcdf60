"""
ToF Stream Sequence Package

Configures a ToF depth sensor over UART and streams its point clouds.
"""

from .sequence import TofStreamSequence

__all__ = ["TofStreamSequence"]
