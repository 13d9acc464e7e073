"""Pytest configuration and fixtures for chunkscribe tests."""

import asyncio
import threading
import time
import wave
import logging
import tempfile
from datetime import datetime
from pathlib import Path

import numpy as np
import pytest
from pubsub import pub

from chunkscribe.models.transcription import TranscriptionResult
from chunkscribe.transcription.base import AbstractTranscriptionBackend


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external services")
    config.addinivalue_line("markers", "integration: tests that wire several components together")


class ScriptedBackend(AbstractTranscriptionBackend):
    """Backend returning canned text per chunk file stem.

    ``responses`` maps file stems to responses, or is a list consumed in call
    order. A response that is an exception instance is raised instead. Tracks
    how many calls are in flight at once.
    """

    service_name = "scripted"

    def __init__(self, responses=None, delay: float = 0.01):
        super().__init__()
        self.responses = responses or {}
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.gate = threading.Event()
        self.gate.set()
        self.lock = threading.Lock()

    async def transcribe_file(self, chunk_id, audio_path):
        stem = Path(audio_path).stem
        with self.lock:
            self.calls.append(stem)
            index = len(self.calls) - 1
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            while not self.gate.is_set():
                await asyncio.sleep(0.005)
            await asyncio.sleep(self.delay)
            if isinstance(self.responses, list):
                response = self.responses[index] if index < len(self.responses) else f"text for {stem}"
            else:
                response = self.responses.get(stem, f"text for {stem}")
            if isinstance(response, Exception):
                raise response
            return TranscriptionResult(
                text=response,
                confidence=0.9,
                processing_time=self.delay,
                timestamp=datetime.now(),
                service=self.service_name,
                chunk_id=chunk_id,
            )
        finally:
            with self.lock:
                self.in_flight -= 1

    def initialize(self) -> bool:
        return True

    def cleanup(self) -> None:
        pass


def _wait_until(predicate, timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` expires."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def wait_until():
    return _wait_until


@pytest.fixture(autouse=True)
def clean_pubsub():
    """Drop pub/sub listeners left behind by a test."""
    yield
    pub.unsubAll()


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def audio_test_data():
    """Generate PCM16 audio test data patterns."""
    def generate_audio(pattern="sine", duration_seconds=1.0, sample_rate=16000):
        samples = int(duration_seconds * sample_rate)

        if pattern == "sine":
            t = np.linspace(0, duration_seconds, samples, False)
            wave_data = 0.5 * np.sin(2 * np.pi * 440 * t)
        elif pattern == "noise":
            wave_data = np.random.uniform(-0.5, 0.5, samples)
        elif pattern == "silence":
            wave_data = np.zeros(samples)
        else:
            raise ValueError(f"Unknown pattern: {pattern}")

        audio_data = (wave_data * 32767).astype(np.int16)
        return audio_data.tobytes()

    return generate_audio


@pytest.fixture
def sample_audio_chunk(audio_test_data):
    """About 64ms of a 440Hz tone."""
    return audio_test_data("sine", duration_seconds=1024 / 16000)


@pytest.fixture
def make_chunk_file(temp_data_dir, audio_test_data):
    """Create a short WAV chunk file named ``<stem>.wav``."""
    chunk_dir = Path(temp_data_dir) / "incoming"
    chunk_dir.mkdir(exist_ok=True)

    def _make(stem: str, duration_seconds: float = 0.1) -> Path:
        path = chunk_dir / f"{stem}.wav"
        with wave.open(str(path), 'wb') as wf:
            wf.setnchannels(1)
            wf.setsampwidth(2)
            wf.setframerate(16000)
            wf.writeframes(audio_test_data("sine", duration_seconds))
        return path

    return _make


@pytest.fixture
def scripted_backend():
    """Factory for ScriptedBackend instances."""
    def _make(responses=None, delay: float = 0.01) -> ScriptedBackend:
        return ScriptedBackend(responses=responses, delay=delay)
    return _make


@pytest.fixture
def processor_factory():
    """Create processors and make sure their workers are stopped afterwards."""
    from chunkscribe.transcription.processor import SequentialChunkProcessor

    created = []

    def _make(backend, **kwargs) -> SequentialChunkProcessor:
        processor = SequentialChunkProcessor(backend, **kwargs)
        created.append((processor, backend))
        return processor

    yield _make

    for processor, backend in created:
        if isinstance(backend, ScriptedBackend):
            backend.gate.set()
        processor.shutdown(timeout=5.0)
