"""Tests for the command line entry point."""

import logging
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from chunkscribe import main as cli
from chunkscribe.errors import TranscriptionError


@pytest.fixture
def restore_logging():
    """setup_logging replaces the root handlers; put the originals back."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def config_path(temp_data_dir):
    path = Path(temp_data_dir) / "chunkscribe.yaml"
    path.write_text(yaml.safe_dump({
        "transcription": {"backend": "scripted", "drain_timeout_seconds": 10},
        "storage": {"data_directory": "data"},
        "logging": {"level": "DEBUG", "file_path": "data/logs/chunkscribe.log", "console_output": False},
        "output": {"verbose": False},
    }), encoding="utf-8")
    return path


@pytest.mark.unit
def test_audio_duration_of_wav(make_chunk_file):
    assert cli.audio_duration(make_chunk_file("a", duration_seconds=0.5)) == pytest.approx(0.5)


@pytest.mark.unit
def test_audio_duration_of_other_formats(temp_data_dir):
    path = Path(temp_data_dir) / "clip.mp3"
    path.write_bytes(b"ID3 not a wav file")
    assert cli.audio_duration(path) == 0.0


@pytest.mark.integration
class TestServer:

    def test_run_returns_transcript_and_saves(self, config_path, scripted_backend, make_chunk_file,
                                              restore_logging, capsys):
        backend = scripted_backend(responses=["good morning", TranscriptionError("bad chunk"), "see you"])
        files = [str(make_chunk_file(stem)) for stem in ("a", "b", "c")]

        with patch("chunkscribe.services.transcription_service.create_backend", return_value=backend):
            server = cli.Server(str(config_path))
            server.init()
            transcript = server.run(files, save=True)

        assert transcript == "Good morning.\n\nSee you."
        output = capsys.readouterr().out
        assert "Saved transcript to" in output
        sessions = list((config_path.parent / "data" / "sessions").iterdir())
        assert len(sessions) == 1
        assert (sessions[0] / "transcript.txt").read_text(encoding="utf-8") == transcript
        assert (config_path.parent / "data" / "logs" / "chunkscribe.log").exists()

    def test_main_exits_with_error_for_missing_config(self, temp_data_dir, restore_logging, capsys):
        argv = ["chunkscribe", "--config", str(Path(temp_data_dir) / "missing.yaml"), "a.wav"]
        with patch.object(sys, "argv", argv):
            with pytest.raises(SystemExit) as excinfo:
                cli.main()

        assert excinfo.value.code == 1
        assert "Configuration file not found" in capsys.readouterr().err

    def test_main_runs_files(self, config_path, scripted_backend, make_chunk_file, restore_logging, capsys):
        backend = scripted_backend(responses=["only chunk"])
        argv = ["chunkscribe", "--config", str(config_path), str(make_chunk_file("a"))]

        with patch.object(sys, "argv", argv), \
                patch("chunkscribe.services.transcription_service.create_backend", return_value=backend):
            cli.main()

        assert "Only chunk." in capsys.readouterr().out

    def test_main_streams_files_through_chunker(self, config_path, scripted_backend, make_chunk_file,
                                                restore_logging, capsys):
        backend = scripted_backend(responses=["streamed words"])
        source = make_chunk_file("live", duration_seconds=0.5)
        argv = ["chunkscribe", "--config", str(config_path), "--stream", str(source)]

        with patch.object(sys, "argv", argv), \
                patch("chunkscribe.services.transcription_service.create_backend", return_value=backend):
            cli.main()

        assert "Streamed words." in capsys.readouterr().out
        # The queue gets a chunk file written by the chunker, never the source
        assert len(backend.calls) == 1
        assert backend.calls[0].startswith("chunk_")
        assert source.exists()
