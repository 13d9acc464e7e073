"""Audio frame producer for the pause chunker."""

import logging
import threading
import time
import wave
from pathlib import Path
from typing import Union

from pubsub import pub

from ..models.events import AudioEvent

logger = logging.getLogger(__name__)

AUDIO_TOPIC = "audio.frame"


class AudioPublisher:
    """Stamps raw PCM16 frames as AudioEvents and publishes them in order.

    Sequence numbers are assigned and messages are sent under one lock, so
    listeners see frames in sequence order even with several producers.
    """

    def __init__(self, topic: str = AUDIO_TOPIC, sample_rate: int = 16000, channels: int = 1):
        self.topic = topic
        self.sample_rate = sample_rate
        self.channels = channels
        self.sequence_number = 0
        self.lock = threading.Lock()
        logger.info(f"AudioPublisher initialized with topic: {topic} ({sample_rate}Hz, {channels}ch)")

    def publish_frame(self, pcm_data: bytes, final: bool = False) -> AudioEvent:
        """Publish one frame; ``final`` marks the end of the recording."""
        with self.lock:
            self.sequence_number += 1
            event = AudioEvent(
                chunk_id=f"frame_{self.sequence_number:06d}",
                audio_data=pcm_data,
                timestamp=time.time(),
                sequence_number=self.sequence_number,
                sample_rate=self.sample_rate,
                channels=self.channels,
                final=final,
            )
            pub.sendMessage(self.topic, event=event)
        return event

    def finish(self) -> AudioEvent:
        """Publish an empty final frame so listeners flush buffered audio."""
        logger.debug(f"End of audio after {self.sequence_number} frames")
        return self.publish_frame(b"", final=True)

    def publish_wav(self, wav_path: Union[str, Path], frame_seconds: float = 0.1) -> int:
        """Replay a 16-bit WAV file as consecutive frames, without a final frame.

        Returns:
            Number of frames published
        """
        frames = 0
        with wave.open(str(wav_path), 'rb') as wf:
            if wf.getsampwidth() != 2:
                raise ValueError(f"{wav_path}: only 16-bit PCM WAV files can be streamed")
            self.sample_rate = wf.getframerate()
            self.channels = wf.getnchannels()
            frames_per_read = max(1, int(self.sample_rate * frame_seconds))
            while True:
                pcm_data = wf.readframes(frames_per_read)
                if not pcm_data:
                    break
                self.publish_frame(pcm_data)
                frames += 1
        logger.info(f"Streamed {wav_path} as {frames} frames")
        return frames
