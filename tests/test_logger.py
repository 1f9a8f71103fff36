import logging

import pytest

from twirp_client import TwirpClient
from twirp_client.logger import BoundLogger, create_logger

from fakes import DummyHttpTransport


class RecordingLogger:
    def __init__(self) -> None:
        self.records: list[tuple[str, str]] = []

    def debug(self, msg: str, *args) -> None:
        self.records.append(("debug", msg % args))

    def info(self, msg: str, *args) -> None:
        self.records.append(("info", msg % args))

    def warn(self, msg: str, *args) -> None:
        self.records.append(("warn", msg % args))


def test_level_threshold_filters_records() -> None:
    sink = RecordingLogger()
    logger = create_logger(logger=sink, level="info")
    logger.debug("hidden")
    logger.info("shown %d", 1)
    logger.warn("also shown")
    assert sink.records == [("info", "shown 1"), ("warn", "also shown")]


def test_child_of_stdlib_logger_is_namespaced() -> None:
    base = logging.getLogger("twirp_client.test")
    child = BoundLogger(base, level="debug").child("channel")
    assert child._logger.name == "twirp_client.test.channel"
    assert child.level == "debug"


def test_logging_failures_do_not_escape() -> None:
    class Broken:
        def info(self, msg: str, *args) -> None:
            raise RuntimeError("sink offline")

    create_logger(logger=Broken()).info("still fine")


def test_unknown_level_is_rejected() -> None:
    with pytest.raises(ValueError):
        BoundLogger(level="verbose")  # type: ignore[arg-type]


def test_client_logs_through_supplied_logger() -> None:
    sink = RecordingLogger()
    TwirpClient(base_url="http://localhost:8080", http_transport=DummyHttpTransport(), logger=sink)
    assert ("info", "Initializing TwirpClient for http://localhost:8080") in sink.records
