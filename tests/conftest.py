import os

import pytest

# wide console so rich tables are not wrapped in captured output
os.environ.setdefault("COLUMNS", "200")

from avr_tool.fuses.device import find_device


@pytest.fixture(autouse=True)
def session_log(tmp_path, monkeypatch):
    log_file = tmp_path / "logs" / "session.jsonl"
    monkeypatch.setattr("avr_tool.main.LOG_FILE", log_file)
    return log_file


@pytest.fixture
def m328p():
    return find_device("atmega328p")
