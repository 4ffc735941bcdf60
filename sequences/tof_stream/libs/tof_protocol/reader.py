"""
Frame reader.

Accumulates exactly one frame from the transport, retrying on read
timeouts, and validates it with FrameParser.
"""

import logging
import threading
from typing import Optional

from .constants import FRAME_OVERHEAD, READ_ATTEMPT_TIMEOUT
from .exceptions import ReadTimeoutError, StreamCancelled
from .frame import Frame, FrameParser
from .transport import BaseTransport

logger = logging.getLogger(__name__)


class FrameReader:
    """Reads fixed-size frames from a transport."""

    def __init__(
        self,
        transport: BaseTransport,
        attempt_timeout: float = READ_ATTEMPT_TIMEOUT,
        cancel_event: Optional[threading.Event] = None
    ):
        """
        Initialize frame reader.

        Args:
            transport: Open transport to read from
            attempt_timeout: Timeout of a single read attempt in seconds
            cancel_event: Checked after each timed-out attempt
        """
        self.transport = transport
        self.attempt_timeout = attempt_timeout
        self.cancel_event = cancel_event
        self.attempts = 0

    def read_frame(self, expected_payload_size: int) -> Frame:
        """
        Read and validate one frame.

        Timeouts are retried without limit. Transport errors and frame
        validation errors propagate on the first occurrence; a bad frame
        has already been consumed from the stream, so it is not re-read.

        Args:
            expected_payload_size: Payload size of the frame to read

        Returns:
            Validated Frame

        Raises:
            TransportError: On a non-timeout read failure
            FrameError: If the frame fails validation
            StreamCancelled: If cancel_event is set while waiting
        """
        frame_size = expected_payload_size + FRAME_OVERHEAD
        self.attempts = 0

        while True:
            self.attempts += 1
            try:
                data = self.transport.read_exact(frame_size, timeout=self.attempt_timeout)
            except ReadTimeoutError as e:
                logger.warning(f"Timed out reading frame (attempt {self.attempts}): {e}")
                if self.cancel_event is not None and self.cancel_event.is_set():
                    raise StreamCancelled("Frame read cancelled") from e
                continue

            return FrameParser.decode(data, expected_payload_size)
