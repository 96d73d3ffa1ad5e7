"""Main application entry point for TypeRewind."""

import sys
import time
import argparse
import logging
from datetime import datetime
from pathlib import Path

from typerewind.capture import FramePublisher, SyntheticFrameProducer
from typerewind.keyboard import InputPublisher, KeyboardMonitor
from typerewind.models.session import SessionInfo
from typerewind.services import RecordingService
from typerewind.storage import FileManager

from .config import TypeRewindConfig

logger = logging.getLogger(__name__)

FRAME_TOPIC = "video.frame"
INPUT_TOPIC = "input.event"


class Server:

    def __init__(self, config_path: str, log_level: str = None):
        # Load configuration
        self.config = TypeRewindConfig(config_path)
        # Set up logging (command line overrides config)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.should_exit = False
        self.keyboard_monitor = None

    def init(self, monitor_input: bool = True):
        logger.info("Initializing services...")

        fps = float(self.config.get('recording.frames_per_second', 60.0))
        logger.info(f"Recording settings: {fps} fps, {self.config.get_buffer_capacity()} frame buffer")

        self.file_manager = FileManager(self.config.get_data_directory())
        self.session_id = self.file_manager.create_session_directory()
        self.sink = self.file_manager.create_frame_sink(self.session_id)

        self.frame_publisher = FramePublisher(FRAME_TOPIC)
        self.producer = self._create_producer(fps)

        if monitor_input and self.config.get('rewind.monitor_input', True):
            self.input_publisher = InputPublisher(INPUT_TOPIC)
            self.keyboard_monitor = KeyboardMonitor(self.input_publisher.publish_input_event)

        # With no input source there is no second clock to compare against
        input_clock = self.producer.clock
        if self.keyboard_monitor is not None:
            input_clock = self.keyboard_monitor.clock

        self.recording_service = RecordingService(
            self.config,
            self.producer,
            self.sink,
            frame_topic=FRAME_TOPIC,
            input_topic=INPUT_TOPIC,
            input_clock=input_clock,
        )

    def _create_producer(self, fps: float):
        source = self.config.get('capture.source', 'synthetic')
        kwargs = dict(
            frames_per_second=fps,
            frames_per_unit=self.config.get('capture.frames_per_unit', 1),
        )
        if source == 'screen':
            from typerewind.capture.screen import ScreenFrameProducer
            return ScreenFrameProducer(self.frame_publisher.publish_frame,
                                       monitor=self.config.get('capture.monitor', 1),
                                       **kwargs)
        if source == 'synthetic':
            return SyntheticFrameProducer(self.frame_publisher.publish_frame,
                                          width=self.config.get('capture.width', 320),
                                          height=self.config.get('capture.height', 200),
                                          **kwargs)
        raise ValueError(f"Unknown capture source: {source}")

    def run(self, duration: int):
        self.start_time = datetime.now()
        try:
            self.recording_service.start()
            if self.keyboard_monitor is not None:
                self.keyboard_monitor.start()
            if duration:
                time.sleep(duration)
            else:
                while not self.should_exit:
                    time.sleep(1)
        finally:
            self.cleanup()

    def cleanup(self):
        if self.keyboard_monitor is not None:
            self.keyboard_monitor.stop()

        if not self.recording_service.is_recording:
            # start() failed; the spooler that would close the sink was never created
            self.sink.close()
            self.file_manager.remove_session(self.session_id)
            logger.warning(f"Session {self.session_id} aborted before recording started")
            return

        stats = self.recording_service.stop()

        session_info = SessionInfo(
            session_id=self.session_id,
            start_time=self.start_time,
            duration_seconds=stats["duration_seconds"],
            frames_file=str(self.sink.frames_path),
            buffer_capacity=stats["buffer_capacity"],
            frames_per_second=self.producer.frames_per_second,
            frames_written=stats["frames_written"],
            frames_displaced=stats["frames_displaced"],
            frames_drained=stats["frames_drained"],
            frames_dropped=stats["frames_dropped"],
            surgeries=stats["surgeries"],
            frames_erased=stats["frames_erased"],
        )
        self.file_manager.save_session_info(session_info)
        print(f"Recording saved to {self.file_manager.get_session_path(self.session_id)}")


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/typerewind.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger = logging.getLogger(__name__)
    logger.info("="*50)
    logger.info("TypeRewind starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("="*50)


def main() -> None:
    """Main entry point for TypeRewind."""
    parser = argparse.ArgumentParser(
        description="TypeRewind - screen recording where backspace rewinds the video",
        epilog="Type normally; backspace erases the footage of the mistyped character. Ctrl-C stops."
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: typerewind.yaml in the current directory)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )

    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Stop after this many seconds (default: 0, record until Ctrl-C)"
    )

    parser.add_argument(
        "--no-input",
        action="store_true",
        help="Don't install keyboard and mouse hooks"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="TypeRewind v0.1.0"
    )

    args = parser.parse_args()

    try:
        server = Server(args.config, args.log_level)
        server.init(monitor_input=not args.no_input)
        server.run(args.duration)
    except KeyboardInterrupt:
        print("\nGoodbye!")
    except Exception as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
