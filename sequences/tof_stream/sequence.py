"""
ToF Stream Sequence Module (SDK 2.0)

Streams point clouds from a 160x60 ToF depth sensor over UART.

This module uses the SDK 2.0 SequenceBase pattern with:
- setup(): Open the serial port and configure the sensor
- run(): Start the stream and deliver point clouds to the sink
- teardown(): Stop the stream and release the port
"""

import asyncio
import logging
import signal
import threading
import time
from typing import Any, Callable, Dict, Optional

from station_service_sdk import (
    SequenceBase,
    RunResult,
    ExecutionContext,
    SetupError,
)

from .libs.tof_protocol import (
    BaseTransport,
    DeviceSession,
    PointCloud,
    SerialTransport,
    StreamCancelled,
    TofProtocolError,
)
from .libs.tof_protocol.constants import (
    DEFAULT_PORT, DEFAULT_BAUDRATE,
    READ_ATTEMPT_TIMEOUT, FRAME_DELAY, SETTLE_DELAY,
)

logger = logging.getLogger(__name__)

# How often run() looks for an abort request while frames are streaming
ABORT_POLL_INTERVAL = 0.1


class TofStreamSequence(SequenceBase):
    """
    ToF point cloud streaming sequence (SDK 2.0).

    The blocking device session runs in the default executor. SIGINT and
    SIGTERM end the stream cleanly; abort() ends it as an aborted run.

    Attributes:
        name: Sequence identifier
        version: Semantic version
        description: Human-readable description
    """

    # Class-level metadata (required by SequenceBase)
    name = "tof_stream"
    version = "1.0.0"
    description = "ToF depth sensor point cloud streaming (160x60, 12-bit)"

    def __init__(
        self,
        context: ExecutionContext,
        hardware_config: Optional[Dict[str, Dict[str, Any]]] = None,
        parameters: Optional[Dict[str, Any]] = None,
        sink: Optional[Callable[[PointCloud], None]] = None,
        **kwargs,
    ) -> None:
        """
        Initialize sequence.

        Args:
            context: Execution context from Station Service
            hardware_config: Hardware configuration dictionary
            parameters: Sequence parameters dictionary
            sink: Receives each decoded point cloud (default: log statistics)
            **kwargs: Additional arguments for SequenceBase
        """
        super().__init__(
            context=context,
            hardware_config=hardware_config,
            parameters=parameters,
            **kwargs,
        )

        self.sink = sink or self.report_point_cloud
        self.cancel_event = threading.Event()

        # Session state (initialized in setup)
        self.transport: Optional[BaseTransport] = None
        self.session: Optional[DeviceSession] = None
        self._previous_handlers: Dict[int, Any] = {}

        # Serial parameters
        self.port: str = self.get_parameter("port", DEFAULT_PORT)
        self.baudrate: int = self.get_parameter("baudrate", DEFAULT_BAUDRATE)

        # Timing parameters
        self.attempt_timeout: float = self.get_parameter("attempt_timeout", READ_ATTEMPT_TIMEOUT)
        self.frame_delay: float = self.get_parameter("frame_delay", FRAME_DELAY)
        self.settle_delay: float = self.get_parameter("settle_delay", SETTLE_DELAY)

        # Stop after this many frames (None streams until cancelled)
        self.max_frames: Optional[int] = self.get_parameter("max_frames", None)

        logger.debug(f"Initialized {self.name} v{self.version}")

    def report_point_cloud(self, cloud: PointCloud) -> None:
        """Default sink: log per-frame depth statistics."""
        stats = cloud.stats()
        self.emit_log(
            "debug",
            f"Frame #{cloud.sequence_number}: min={stats['min']} "
            f"max={stats['max']} mean={stats['mean']:.1f}"
        )

    # =========================================================================
    # Lifecycle Methods (Required by SequenceBase)
    # =========================================================================

    async def setup(self) -> None:
        """
        Open the port and configure the sensor.

        A stop request while the sensor is being configured ends setup
        without an error.

        Raises:
            SetupError: If the port cannot be opened or the sensor
                does not answer the device info query
        """
        self.emit_log("info", "Initializing sensor...")
        self._install_signal_handlers()

        if self.context.dry_run:
            self.emit_log("info", "Simulation mode - using transport from context")
            self.transport = self.context.hardware.get("tof_sensor")
            if self.transport is None:
                return
        else:
            hw_config = self.get_hardware_config("tof_sensor")
            port = hw_config.get("port", self.port)
            baudrate = hw_config.get("baudrate", self.baudrate)

            self.emit_log("info", f"Connecting to sensor on {port} @ {baudrate} bps")
            self.transport = SerialTransport(port=port, baudrate=baudrate)

        self.session = DeviceSession(
            self.transport,
            cancel_event=self.cancel_event,
            attempt_timeout=self.attempt_timeout,
            frame_delay=self.frame_delay,
            settle_delay=self.settle_delay,
        )

        try:
            await self._run_sync(self.session.open)
            device_info = await self._run_sync(self.session.configure)
        except StreamCancelled:
            self.emit_log("info", "Stop requested while configuring the sensor")
            return
        except TofProtocolError as e:
            raise SetupError(f"Sensor setup failed: {e}", details={"original_error": str(e)})

        self.emit_log("info", f"Device info: {device_info.hex()}")

    async def run(self) -> RunResult:
        """
        Start the stream and deliver point clouds to the sink.

        Returns:
            RunResult with passed status, frame count and device info
        """
        total_steps = 2
        data: Dict[str, Any] = {
            "device_info": None,
            "frames": 0,
            "cancelled": self.cancel_event.is_set(),
        }

        if self.session is None or self.cancel_event.is_set():
            self.emit_log("info", "Stream not started")
            return {"passed": True, "measurements": {}, "data": data}

        data["device_info"] = self.session.device_info.hex()

        # =====================================================================
        # Step 1: Start Stream
        # =====================================================================
        self.emit_step_start("start_stream", 1, total_steps, "Start point cloud stream")
        start_time = time.time()
        self.check_abort()

        try:
            await self._run_sync(self.session.start_stream)
            self.emit_step_complete("start_stream", 1, True, time.time() - start_time)
        except TofProtocolError as e:
            self.emit_step_complete("start_stream", 1, False, time.time() - start_time, error=str(e))
            self.emit_error("START_STREAM_ERROR", str(e))
            return {"passed": False, "measurements": {}, "data": {**data, "stopped_at": "start_stream"}}

        # =====================================================================
        # Step 2: Stream Point Clouds
        # =====================================================================
        self.emit_step_start("stream", 2, total_steps, "Stream point clouds")
        start_time = time.time()
        error: Optional[str] = None

        try:
            await self._stream()
        except TofProtocolError as e:
            error = str(e)
            self.emit_error("STREAM_ERROR", error)

        data["frames"] = self.session.frames_read
        data["cancelled"] = self.cancel_event.is_set()
        measurements = {"frames": self.session.frames_read}

        self.emit_measurement("frames", self.session.frames_read)
        self.emit_step_complete(
            "stream", 2, error is None, time.time() - start_time,
            measurements=measurements, error=error,
        )
        self.emit_log("info", f"Streaming finished - {self.session.frames_read} frames")
        self.check_abort()

        return {"passed": error is None, "measurements": measurements, "data": data}

    async def teardown(self) -> None:
        """
        Stop the stream and close the port.

        Always called, even if setup or run failed.
        """
        self.emit_log("info", "Releasing resources...")

        if self.session:
            self.session.stop()
            self.session.close()
        elif self.transport:
            self.transport.close()

        self.session = None
        self.transport = None
        self._restore_signal_handlers()
        self.emit_log("info", "Resources released")

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _stream(self) -> int:
        """Run the blocking stream, turning an abort request into a stop."""
        task = asyncio.ensure_future(
            self._run_sync(self.session.stream, self.sink, self.max_frames)
        )
        while not task.done():
            if self._aborted:
                self.cancel_event.set()
            await asyncio.wait({task}, timeout=ABORT_POLL_INTERVAL)
        return task.result()

    async def _run_sync(self, func, *args, **kwargs) -> Any:
        """
        Run synchronous function in executor.

        The tof_protocol session uses synchronous serial communication,
        so we run it in a thread pool to avoid blocking.
        """
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, lambda: func(*args, **kwargs))

    def _request_stop(self, signum, frame) -> None:
        logger.info(f"Received signal {signum}, stopping stream")
        self.cancel_event.set()

    def _install_signal_handlers(self) -> None:
        # signal.signal only works in the main thread
        if threading.current_thread() is not threading.main_thread():
            return
        for signum in (signal.SIGINT, signal.SIGTERM):
            self._previous_handlers[signum] = signal.signal(signum, self._request_stop)

    def _restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._previous_handlers.clear()
