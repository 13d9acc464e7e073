"""Unit tests for the transcription backends and backend selection."""

import asyncio
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import yaml
from aiohttp import web
from aiohttp import test_utils
from google.api_core import exceptions as gax_exceptions

from chunkscribe.config import ChunkScribeConfig
from chunkscribe.errors import TranscriptionError
from chunkscribe.services.transcription_service import create_backend
from chunkscribe.transcription.google_backend import GoogleSpeechBackend
from chunkscribe.transcription.whisper_backend import WhisperHTTPBackend


def recognition_result(transcript, confidence):
    return SimpleNamespace(alternatives=[SimpleNamespace(transcript=transcript, confidence=confidence)])


@pytest.fixture
def google_backend():
    backend = GoogleSpeechBackend(credentials_path="unused.json")
    backend.client = MagicMock()
    return backend


@pytest.mark.unit
class TestGoogleSpeechBackend:

    def test_joins_consecutive_results(self, google_backend, make_chunk_file):
        google_backend.client.recognize.return_value = SimpleNamespace(results=[
            recognition_result(" hello there ", 0.8),
            recognition_result("general kenobi", 0.6),
        ])

        result = asyncio.run(google_backend.transcribe_file("c1", make_chunk_file("a")))

        assert result.text == "hello there general kenobi"
        assert result.confidence == pytest.approx(0.7)
        assert result.chunk_id == "c1"

    def test_no_speech_returns_empty_text(self, google_backend, make_chunk_file):
        google_backend.client.recognize.return_value = SimpleNamespace(results=[])

        result = asyncio.run(google_backend.transcribe_file("c1", make_chunk_file("a")))

        assert result.text == ""

    @pytest.mark.parametrize("error", [
        gax_exceptions.ServiceUnavailable("unavailable"),
        gax_exceptions.DeadlineExceeded("too slow"),
        gax_exceptions.InvalidArgument("bad audio"),
    ])
    def test_api_errors_become_transcription_errors(self, google_backend, make_chunk_file, error):
        google_backend.client.recognize.side_effect = error

        with pytest.raises(TranscriptionError) as excinfo:
            asyncio.run(google_backend.transcribe_file("c1", make_chunk_file("a")))
        assert excinfo.value.chunk_id == "c1"

    def test_uninitialized_backend_fails(self, make_chunk_file):
        backend = GoogleSpeechBackend(credentials_path="unused.json")
        with pytest.raises(TranscriptionError):
            asyncio.run(backend.transcribe_file("c1", make_chunk_file("a")))

    def test_credentials_required(self):
        with pytest.raises(ValueError):
            GoogleSpeechBackend(credentials_path=None)


async def _transcribe_against(handler, audio_path, **backend_kwargs):
    app = web.Application()
    app.router.add_post("/v1/audio/transcriptions", handler)
    async with test_utils.TestServer(app) as server:
        backend = WhisperHTTPBackend(str(server.make_url("/v1")), **backend_kwargs)
        return await backend.transcribe_file("c1", audio_path)


@pytest.mark.unit
class TestWhisperHTTPBackend:

    def test_uploads_chunk_and_parses_text(self, make_chunk_file):
        audio_path = make_chunk_file("upload")
        received = {}

        async def handler(request):
            form = await request.post()
            received["model"] = form["model"]
            received["language"] = form["language"]
            received["filename"] = form["file"].filename
            received["size"] = len(form["file"].file.read())
            received["auth"] = request.headers.get("Authorization")
            return web.json_response({"text": "  transcribed words "})

        result = asyncio.run(_transcribe_against(handler, audio_path, api_key="secret", model="whisper-large"))

        assert result.text == "transcribed words"
        assert result.chunk_id == "c1"
        assert received == {
            "model": "whisper-large",
            "language": "en",
            "filename": "upload.wav",
            "size": audio_path.stat().st_size,
            "auth": "Bearer secret",
        }

    def test_server_error_raises(self, make_chunk_file):
        async def handler(request):
            await request.read()
            return web.Response(status=503, text="overloaded")

        with pytest.raises(TranscriptionError, match="503"):
            asyncio.run(_transcribe_against(handler, make_chunk_file("a")))

    def test_connection_error_raises(self, make_chunk_file):
        backend = WhisperHTTPBackend("http://127.0.0.1:1/v1", request_timeout=2.0)
        with pytest.raises(TranscriptionError):
            asyncio.run(backend.transcribe_file("c1", make_chunk_file("a")))

    def test_base_url_required(self):
        with pytest.raises(ValueError):
            WhisperHTTPBackend("")


@pytest.mark.unit
class TestCreateBackend:

    def make_config(self, directory, data):
        path = Path(directory) / "chunkscribe.yaml"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return ChunkScribeConfig(str(path))

    def test_whisper_http(self, temp_data_dir):
        config = self.make_config(temp_data_dir, {
            "transcription": {"backend": "whisper_http"},
            "whisper_http": {"base_url": "http://localhost:8000/v1/", "model": "tiny"},
        })

        backend = create_backend(config)

        assert isinstance(backend, WhisperHTTPBackend)
        assert backend.endpoint == "http://localhost:8000/v1/audio/transcriptions"
        assert backend.get_stats()["model"] == "tiny"

    def test_unknown_backend(self, temp_data_dir):
        config = self.make_config(temp_data_dir, {"transcription": {"backend": "carrier-pigeon"}})
        with pytest.raises(ValueError):
            create_backend(config)

    def test_google_without_credentials(self, temp_data_dir):
        config = self.make_config(temp_data_dir, {"transcription": {"backend": "google"}})
        with pytest.raises(ValueError):
            create_backend(config)
