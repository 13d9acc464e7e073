"""Main application entry point for chunkscribe."""

import sys
import wave
import argparse
import logging
from pathlib import Path
from typing import List

from rich.console import Console

from chunkscribe import __version__
from chunkscribe.services.transcription_service import TranscriptionService
from chunkscribe.transcription.monitor import ParagraphMonitor

from .config import ChunkScribeConfig

logger = logging.getLogger(__name__)


def audio_duration(path: Path) -> float:
    """Duration of a WAV file in seconds, 0.0 for other formats."""
    try:
        with wave.open(str(path), 'rb') as wf:
            return wf.getnframes() / float(wf.getframerate())
    except (wave.Error, EOFError):
        logger.debug(f"Could not read WAV header of {path}; duration unknown")
        return 0.0


class Server:

    def __init__(self, config_path: str, log_level: str = None):
        self.config = ChunkScribeConfig(config_path)
        log_level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, log_level)
        self.console = Console()

    def init(self):
        logger.info("Initializing services...")
        self.transcription_service = TranscriptionService(self.config)
        self.monitor = ParagraphMonitor(
            console=self.console,
            paragraph_topic=self.transcription_service.publisher.paragraph_topic,
            status_topic=self.transcription_service.publisher.status_topic,
            verbose=self.config.get('output.verbose', True),
        )

    def run(self, files: List[str], save: bool = False, stream: bool = False) -> str:
        """Queue the files, wait for the queue and return the transcript.

        Each file is one chunk, unless ``stream`` is set, in which case WAV
        files are cut into chunks at speech pauses.
        """
        try:
            for file_name in files:
                path = Path(file_name)
                if stream:
                    chunks = self.transcription_service.stream_file(path)
                    logger.info(f"{path} was cut into {chunks} chunks")
                else:
                    self.transcription_service.submit_file(path, audio_duration(path))

            timeout = self.config.get('transcription.drain_timeout_seconds')
            if not self.transcription_service.processor.wait_for_drain(timeout):
                logger.warning("Timed out waiting for transcription queue to drain")

            self.monitor.print_summary()
            if save:
                transcript_file = self.transcription_service.save_session()
                self.console.print(f"Saved transcript to {transcript_file}")
            return self.transcription_service.processor.final_transcript()
        finally:
            self.cleanup()

    def cleanup(self):
        self.transcription_service.shutdown()
        self.monitor.shutdown()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/chunkscribe.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("chunkscribe starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def main() -> None:
    """Main entry point for chunkscribe."""
    parser = argparse.ArgumentParser(
        description="chunkscribe - transcribe pause-segmented audio chunks in order"
    )

    parser.add_argument(
        "files",
        nargs="+",
        help="Audio chunk files, in speaking order"
    )

    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="Path to configuration YAML file"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )

    parser.add_argument(
        "--save",
        action="store_true",
        help="Save the transcript and paragraphs to a new session directory"
    )

    parser.add_argument(
        "--stream",
        action="store_true",
        help="Cut WAV files into chunks at speech pauses instead of one chunk per file"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"chunkscribe v{__version__}"
    )

    args = parser.parse_args()

    try:
        server = Server(args.config, args.log_level)
        server.init()
        server.run(args.files, save=args.save, stream=args.stream)
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(130)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
