"""Transcription service that wires the chunk pipeline together."""

import logging
from pathlib import Path
from typing import Dict, Any, Optional, Union

from pubsub import pub

from ..audio.audio_pub import AUDIO_TOPIC, AudioPublisher
from ..audio.segmenter import PauseChunker
from ..config import ChunkScribeConfig
from ..storage.file_manager import FileManager
from ..transcription.base import AbstractTranscriptionBackend
from ..transcription.processor import SequentialChunkProcessor
from ..transcription.publisher import ProcessorEventPublisher, PARAGRAPH_TOPIC, STATUS_TOPIC

logger = logging.getLogger(__name__)


def create_backend(config: ChunkScribeConfig) -> AbstractTranscriptionBackend:
    """Create and initialize the backend selected by ``transcription.backend``."""
    backend_name = config.get('transcription.backend', 'google')
    sample_rate = config.get('realtime.sample_rate', 16000)

    if backend_name == 'google':
        from ..transcription.google_backend import GoogleSpeechBackend
        backend = GoogleSpeechBackend(
            credentials_path=config.get_google_credentials_path(),
            sample_rate=sample_rate,
            language=config.get('google_cloud.language', 'en-US'),
            use_enhanced=config.get('google_cloud.use_enhanced_model', True),
            enable_automatic_punctuation=config.get('google_cloud.enable_automatic_punctuation', True),
        )
    elif backend_name == 'whisper_http':
        from ..transcription.whisper_backend import WhisperHTTPBackend
        backend = WhisperHTTPBackend(
            base_url=config.get('whisper_http.base_url'),
            api_key=config.get('whisper_http.api_key'),
            model=config.get('whisper_http.model', 'whisper-1'),
            language=config.get('whisper_http.language', 'en'),
            request_timeout=config.get('whisper_http.timeout_seconds', 60.0),
        )
    else:
        raise ValueError(f"Unknown transcription backend: {backend_name}")

    logger.info(f"Initializing {backend.service_name} backend...")
    if not backend.initialize():
        raise RuntimeError(f"{backend.service_name} backend failed to initialize")
    logger.info(f"{backend.service_name} backend initialized successfully")
    return backend


class TranscriptionService:
    """Owns one recording session's processor, chunker and storage."""

    def __init__(self, config: ChunkScribeConfig,
                 backend: Optional[AbstractTranscriptionBackend] = None,
                 audio_topic: str = AUDIO_TOPIC):
        """Initialize transcription service.

        Args:
            config: Application configuration
            backend: Backend to use; created from the config when omitted
            audio_topic: Pub/sub topic the chunker listens on once started
        """
        self.config = config
        self.audio_topic = audio_topic
        self.file_manager = FileManager(config.get_data_directory())
        self.backend = backend or create_backend(config)

        self.publisher = ProcessorEventPublisher(
            paragraph_topic=config.get('events.paragraph_topic', PARAGRAPH_TOPIC),
            status_topic=config.get('events.status_topic', STATUS_TOPIC),
        )
        self.processor = SequentialChunkProcessor(
            backend=self.backend,
            publisher=self.publisher,
            delete_resource=self.file_manager.delete_chunk_file,
        )
        settings = config.get_realtime_settings()
        self.chunker = PauseChunker(
            file_manager=self.file_manager,
            on_chunk=self.processor.enqueue,
            settings=settings,
            preview_provider=lambda: self.processor.interim_text,
        )
        self.audio_publisher = AudioPublisher(audio_topic, settings.sample_rate, settings.channels)
        self.is_listening = False

    def start_listening(self) -> None:
        """Subscribe the chunker to captured audio frames."""
        if self.is_listening:
            return
        pub.subscribe(self.chunker.on_audio_chunk, self.audio_topic)
        self.is_listening = True
        logger.info(f"Listening for audio frames on {self.audio_topic}")

    def stop_listening(self) -> None:
        """Unsubscribe from audio frames and emit any buffered speech."""
        if not self.is_listening:
            return
        try:
            pub.unsubscribe(self.chunker.on_audio_chunk, self.audio_topic)
        except Exception as e:
            logger.warning(f"Error during unsubscribe: {e}")
        self.is_listening = False
        self.chunker.flush()

    def push_audio(self, pcm_data: bytes, final: bool = False) -> None:
        """Publish captured PCM16 audio to the chunker.

        Frames are dropped by pub/sub unless the service is listening.
        """
        self.audio_publisher.publish_frame(pcm_data, final=final)

    def stream_file(self, audio_path: Union[str, Path], frame_seconds: float = 0.1) -> int:
        """Feed a WAV file through the pause chunker as if it were live audio.

        Returns:
            Number of chunks the file was cut into
        """
        self.start_listening()
        emitted_before = self.chunker.chunks_emitted
        self.audio_publisher.publish_wav(audio_path, frame_seconds)
        self.audio_publisher.finish()
        return self.chunker.chunks_emitted - emitted_before

    def submit_file(self, audio_path: Union[str, Path], duration: float, preview_text: str = "") -> str:
        """Stage an existing audio file and queue it as one chunk."""
        staged = self.file_manager.stage_chunk(audio_path)
        return self.processor.enqueue(staged, duration, preview_text)

    def reset_session(self) -> None:
        self.chunker.reset()
        self.processor.reset()

    def save_session(self) -> Path:
        """Save the final transcript and paragraphs to a new session directory."""
        session_id = self.file_manager.create_session_directory()
        return self.file_manager.save_transcript(
            session_id, self.processor.final_transcript(), self.processor.paragraphs)

    def shutdown(self, timeout: float = 30.0) -> Dict[str, Any]:
        """Stop listening, drain the queue and release the backend.

        Returns:
            Result dictionary with success status
        """
        logger.info("Shutting down transcription service...")
        self.stop_listening()
        drained = self.processor.shutdown(timeout=timeout)

        try:
            self.backend.cleanup()
        except Exception as e:
            logger.warning(f"Error cleaning up backend: {e}")

        logger.info(f"Transcription service shutdown complete: drained={drained}")
        return {
            "success": drained,
            "completed": self.processor.completed_count,
            "paragraphs": len(self.processor.paragraphs),
        }
