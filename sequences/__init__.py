"""
Sequences Package

This package contains sensor streaming sequences. Each sequence is a
self-contained package with its own protocol library and run logic.

Available sequences:
- tof_stream: 160x60 ToF depth sensor point cloud streaming
"""

__all__ = ["tof_stream"]
