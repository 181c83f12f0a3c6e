import logging
from pathlib import Path

import pytest

from genstream.config import LogLevel
from genstream.logging import _to_logging_level, attach_log_file, detach_log_files, log_file_path


@pytest.fixture(autouse=True)
def _reset_namespace_logger():
    logger = logging.getLogger("genstream")
    previous = logger.level
    logger.setLevel(logging.DEBUG)
    yield
    detach_log_files()
    logger.setLevel(previous)


def _file_handlers() -> list[logging.FileHandler]:
    return [h for h in logging.getLogger("genstream").handlers if isinstance(h, logging.FileHandler)]


def test_log_file_path_respects_base(tmp_path: Path) -> None:
    assert log_file_path("abc", tmp_path) == tmp_path / "abc.log"


def test_log_file_path_defaults_to_home(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GENSTREAM_HOME", str(tmp_path))
    assert log_file_path("client") == tmp_path / "logs" / "client.log"


def test_attached_file_receives_library_records(tmp_path: Path) -> None:
    path = attach_log_file("run-1", base_dir=tmp_path / "logs", log_level=LogLevel.INFO)

    logging.getLogger("genstream.api_client.stream").warning("stream stalled")
    logging.getLogger("genstream.api_client.stream").debug("below handler level")
    detach_log_files()

    text = path.read_text()
    assert path == tmp_path / "logs" / "run-1.log"
    assert "genstream.api_client.stream: stream stalled" in text
    assert "below handler level" not in text


def test_attach_is_idempotent_and_updates_level(tmp_path: Path) -> None:
    attach_log_file("dup", base_dir=tmp_path)
    attach_log_file("dup", base_dir=tmp_path, log_level=LogLevel.ERROR)

    handlers = _file_handlers()
    assert len(handlers) == 1
    assert handlers[0].level == logging.ERROR


def test_detach_closes_handlers(tmp_path: Path) -> None:
    attach_log_file("a", base_dir=tmp_path)
    attach_log_file("b", base_dir=tmp_path)
    assert len(_file_handlers()) == 2

    detach_log_files()

    assert _file_handlers() == []


def test_unknown_level_string_falls_back_to_warning(tmp_path: Path) -> None:
    attach_log_file("unknown", base_dir=tmp_path, log_level="verbose")

    assert _file_handlers()[0].level == logging.WARNING


def test_to_logging_level_handles_enum_and_string():
    assert _to_logging_level(LogLevel.ERROR) == logging.ERROR
    assert _to_logging_level("debug") == logging.DEBUG
    assert _to_logging_level(123) == logging.WARNING
