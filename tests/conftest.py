import logging
from unittest import mock

import pytest
import requests

from file_sender.core.models import AgentSettings


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _response(status_code: int = 200, reason: str = "OK", text: str = ""):
    response = mock.Mock(spec=requests.Response)
    response.status_code = status_code
    response.reason = reason
    response.text = text
    return response


@pytest.fixture
def make_response():
    return _response


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session():
    fake = mock.Mock(spec=requests.Session)
    fake.post.return_value = _response()
    return fake


@pytest.fixture
def settings(tmp_path):
    return AgentSettings(
        endpoint="http://upload.test:38080/upload",
        username="user",
        password="secret",
        send_dir=str(tmp_path / "send"),
        archive_dir=str(tmp_path / "archive"),
        log_dir=str(tmp_path / "logs"),
        log_file="app_daily.log",
        num_workers=2,
        poll_interval=0.05,
        stability_seconds=2.0,
    )


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
