"""
Device session.

Runs the command sequence and the streaming loop:

    CLOSED -open-> OPENED -configure-> CONFIGURED -start_stream-> STREAMING -stop-> STOPPED

States only move forward. Any fatal error stops the session (with a
best-effort STOP_STREAM) and is re-raised to the caller.
"""

import itertools
import logging
import threading
import time
from enum import Enum
from typing import Callable, Iterator, Optional

from .constants import (
    DEVICE_INFO_PAYLOAD_SIZE, SENSOR_FRAME_PAYLOAD_SIZE,
    SENSOR_WIDTH, SENSOR_HEIGHT,
    READ_ATTEMPT_TIMEOUT, FRAME_DELAY, SETTLE_DELAY,
)
from .device import DeviceInfo
from .exceptions import SessionStateError, StreamCancelled, TofProtocolError
from .frame import FrameBuilder
from .pointcloud import PointCloud, PointCloudDecoder
from .reader import FrameReader
from .transport import BaseTransport

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Session lifecycle states."""
    CLOSED = 0
    OPENED = 1
    CONFIGURED = 2
    STREAMING = 3
    STOPPED = 4


class DeviceSession:
    """Drives one sensor session over a transport."""

    def __init__(
        self,
        transport: BaseTransport,
        cancel_event: Optional[threading.Event] = None,
        attempt_timeout: float = READ_ATTEMPT_TIMEOUT,
        frame_delay: float = FRAME_DELAY,
        settle_delay: float = SETTLE_DELAY
    ):
        """
        Initialize device session.

        Args:
            transport: Transport exclusively owned by this session
            cancel_event: Set by the process to request the stream to stop
            attempt_timeout: Timeout of a single frame read attempt in seconds
            frame_delay: Pause after each delivered frame in seconds
            settle_delay: Pause after configuration and stream start in seconds
        """
        self.transport = transport
        self.cancel_event = cancel_event or threading.Event()
        self.frame_delay = frame_delay
        self.settle_delay = settle_delay
        self.device_info: Optional[DeviceInfo] = None
        self.frames_read = 0
        self._state = SessionState.CLOSED
        self._reader = FrameReader(transport, attempt_timeout, self.cancel_event)

    @property
    def state(self) -> SessionState:
        return self._state

    def _require(self, operation: str, state: SessionState) -> None:
        if self._state != state:
            raise SessionStateError(operation, self._state)

    def _send(self, frame_data: bytes) -> None:
        logger.debug(f"Sending frame: {frame_data.hex()}")
        self.transport.write(frame_data)

    def open(self) -> None:
        """Open the transport."""
        self._require("open", SessionState.CLOSED)
        if not self.transport.is_open:
            self.transport.open()
        self._state = SessionState.OPENED

    def configure(self) -> DeviceInfo:
        """
        Set the reporting baud rate and query device information.

        Returns:
            DeviceInfo from the sensor's reply
        """
        self._require("configure", SessionState.OPENED)

        try:
            self._send(FrameBuilder.build_set_baud())
            self._send(FrameBuilder.build_query_device_info())

            frame = self._reader.read_frame(DEVICE_INFO_PAYLOAD_SIZE)
            self.device_info = DeviceInfo.from_frame(frame)
            logger.info(f"Device info: {self.device_info.hex()}")

            self.transport.flush()
        except TofProtocolError:
            self.stop()
            raise

        time.sleep(self.settle_delay)
        self._state = SessionState.CONFIGURED
        return self.device_info

    def start_stream(self) -> None:
        """Ask the sensor to start emitting frames."""
        self._require("start stream", SessionState.CONFIGURED)

        try:
            self._send(FrameBuilder.build_start_stream())
        except TofProtocolError:
            self.stop()
            raise

        logger.info("Started reading frames")
        time.sleep(self.settle_delay)
        self._state = SessionState.STREAMING

    def frames(self) -> Iterator[PointCloud]:
        """
        Yield point clouds until cancelled or a fatal error occurs.

        The session is stopped whenever the generator exits.
        """
        self._require("stream", SessionState.STREAMING)

        try:
            while not self.cancel_event.is_set():
                try:
                    frame = self._reader.read_frame(SENSOR_FRAME_PAYLOAD_SIZE)
                except StreamCancelled:
                    logger.info("Stream cancelled while waiting for a frame")
                    break

                cloud = PointCloudDecoder.decode_cloud(
                    frame.payload, SENSOR_WIDTH, SENSOR_HEIGHT,
                    sequence_number=self.frames_read
                )
                self.frames_read += 1
                yield cloud

                time.sleep(self.frame_delay)
        except TofProtocolError as e:
            logger.error(f"Failed to read frame: {e}")
            raise
        finally:
            self.stop()

    def stream(
        self,
        callback: Callable[[PointCloud], None],
        max_frames: Optional[int] = None
    ) -> int:
        """
        Deliver point clouds to callback.

        Args:
            callback: Called once per decoded frame
            max_frames: Stop after this many frames (None runs until cancelled)

        Returns:
            Number of frames delivered
        """
        self._require("stream", SessionState.STREAMING)

        delivered = 0
        clouds = self.frames()
        try:
            # islice never pulls a frame past the limit
            for cloud in itertools.islice(clouds, max_frames):
                callback(cloud)
                delivered += 1
        finally:
            clouds.close()
            # A generator closed before its first frame skips its own stop
            self.stop()
        return delivered

    def stop(self) -> None:
        """Send STOP_STREAM once, without retrying, and enter STOPPED."""
        if self._state == SessionState.STOPPED:
            return

        was_closed = self._state == SessionState.CLOSED
        self._state = SessionState.STOPPED
        if was_closed:
            return

        try:
            self._send(FrameBuilder.build_stop_stream())
            logger.info("Stopped reading frames")
        except TofProtocolError as e:
            logger.warning(f"Failed to send stop command: {e}")

    def close(self) -> None:
        """Close the transport."""
        self.transport.close()

    def __enter__(self) -> 'DeviceSession':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
        self.close()

    def __repr__(self) -> str:
        return f"DeviceSession({self.transport!r}, {self._state.name})"
