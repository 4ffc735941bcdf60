"""
Custom exceptions for the ToF sensor protocol.
"""


class TofProtocolError(Exception):
    """Base exception for ToF protocol errors."""
    pass


class TransportError(TofProtocolError):
    """Serial open, write or read failure (other than a timeout)."""
    pass


class ReadTimeoutError(TofProtocolError):
    """A single read attempt did not complete in time."""

    def __init__(self, timeout: float, received: int = 0, expected: int = 0):
        self.timeout = timeout
        self.received = received
        self.expected = expected
        super().__init__(
            f"Read timed out after {timeout}s ({received}/{expected} bytes)"
        )


class FrameError(TofProtocolError):
    """Frame parsing or building error."""
    pass


class BadMagicError(FrameError):
    """Frame header does not match the protocol magic."""

    def __init__(self, received: bytes):
        self.received = bytes(received)
        super().__init__(f"Bad frame header: {self.received.hex(' ')}")


class BadSizeError(FrameError):
    """Frame size differs from the size the caller expects."""

    def __init__(self, expected: int, received: int):
        self.expected = expected
        self.received = received
        super().__init__(
            f"Size mismatch: expected {expected}, received {received}"
        )


class ChecksumError(FrameError):
    """Checksum verification failed."""

    def __init__(self, expected: int, received: int):
        self.expected = expected
        self.received = received
        super().__init__(
            f"Checksum mismatch: expected 0x{expected:02X}, received 0x{received:02X}"
        )


class PayloadTooLargeError(FrameError):
    """Payload does not fit in the 16-bit size field."""

    def __init__(self, size: int):
        self.size = size
        super().__init__(f"Payload of {size} bytes exceeds maximum size (65535)")


class PayloadTooShortError(TofProtocolError):
    """Payload ends before the point cloud is filled."""

    def __init__(self, required: int, received: int):
        self.required = required
        self.received = received
        super().__init__(
            f"Payload too short: need {required} bytes, got {received}"
        )


class SessionStateError(TofProtocolError):
    """Operation not allowed in the current session state."""

    def __init__(self, operation: str, state):
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} while session is {state.name}")


class StreamCancelled(TofProtocolError):
    """Cancellation was requested while waiting for a frame."""
    pass
