#!/usr/bin/env python3
"""
ToF Stream Sequence - CLI Entry Point (SDK 2.0)

This module provides the CLI entry point for running the sequence
as a subprocess from Station Service.

Usage:
    python -m sequences.tof_stream.main --start --config '{"parameters": {"port": "/dev/ttyUSB0"}}'
    python -m sequences.tof_stream.main --start --config '{"parameters": {"max_frames": 100}}'
    python -m sequences.tof_stream.main --start --dry-run
"""

from sequences.tof_stream.sequence import TofStreamSequence


def main() -> int:
    return TofStreamSequence.run_from_cli()


if __name__ == "__main__":
    exit(main())
