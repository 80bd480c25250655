from datetime import datetime

import pytest

from akashi.config import LogType
from akashi.logger import ULogger

MOMENT = datetime(2024, 1, 5, 13, 4, 5)


def clock():
    return MOMENT


class FakeConfig:
    def __init__(self, log_type=LogType.MODCALL, buffer_size=500, texts=None):
        self.log_type = log_type
        self.buffer_size = buffer_size
        self.texts = texts or {}

    def logging_type(self):
        return self.log_type

    def log_buffer(self):
        return self.buffer_size

    def log_text(self, key):
        return self.texts.get(key, "")


def make(tmp_path, **kwargs):
    return ULogger(FakeConfig(**kwargs), log_dir=tmp_path, clock=clock)


def test_ic_entry_contains_fields_and_time(tmp_path):
    log = make(tmp_path)
    log.log_ic("Phoenix", "nick", "ipid1", "Lobby", "Objection")
    [entry] = log.buffer("Lobby")
    assert entry.endswith("\n")
    for part in ("Phoenix", "nick", "ipid1", "Lobby", "Objection"):
        assert part in entry
    assert "Fri January 5 2024 | 13:04:05" in entry


def test_custom_template_substitution(tmp_path):
    log = make(tmp_path, texts={"ooc": "%6|%2"})
    log.log_ooc("char", "ooc", "ip", "Lobby", "msg")
    assert log.buffer("Lobby") == ["msg|char\n"]


def test_login_outcome(tmp_path):
    log = make(tmp_path, texts={"login": "%2"})
    log.log_login("c", "o", "admin", "ip", "Lobby", True)
    log.log_login("c", "o", "admin", "ip", "Lobby", False)
    assert log.buffer("Lobby") == ["SUCCESS][admin\n", "FAILED][admin\n"]


@pytest.mark.parametrize("command", ["login", "rootpass"])
def test_sensitive_commands_hide_arguments(tmp_path, command):
    log = make(tmp_path)
    log.log_cmd("c", "ip", "o", command, ["hunter2"], "Lobby")
    [entry] = log.buffer("Lobby")
    assert "hunter2" not in entry


def test_adduser_logs_only_username(tmp_path):
    log = make(tmp_path)
    log.log_cmd("c", "ip", "o", "adduser", ["alice", "hunter2"], "Lobby")
    [entry] = log.buffer("Lobby")
    assert "alice" in entry
    assert "hunter2" not in entry


def test_regular_command_joins_arguments(tmp_path):
    log = make(tmp_path, texts={"cmd": "%5:%6"})
    log.log_cmd("c", "ip", "o", "roll", ["6", "2"], "Lobby")
    assert log.buffer("Lobby") == ["roll:6 2\n"]


def test_server_events_go_to_server_buffer(tmp_path):
    log = make(tmp_path)
    log.log_kick("mod", "bad")
    log.log_ban("mod", "bad", "1h")
    log.log_connection_attempt("127.0.0.1", "ipid", "hw")
    assert len(log.buffer("SERVER")) == 3
    assert log.buffer("Lobby") == []


def test_buffer_is_bounded(tmp_path):
    log = make(tmp_path, buffer_size=2, texts={"ic": "%6"})
    for index in range(5):
        log.log_ic("c", "o", "ip", "Lobby", str(index))
    assert log.buffer("Lobby") == ["2\n", "3\n", "4\n"]


def test_modcall_writes_report(tmp_path):
    log = make(tmp_path, texts={"ic": "%6"})
    log.log_ic("c", "o", "ip", "Lobby", "hello")
    log.log_modcall("c", "ip", "o", "Lobby")
    reports = list((tmp_path / "modcall").iterdir())
    assert len(reports) == 1
    content = reports[0].read_text(encoding="utf-8")
    assert content == "".join(log.buffer("Lobby"))
    assert content.startswith("hello\n")


def test_full_logging_writes_daily_file(tmp_path):
    log = make(tmp_path, log_type=LogType.FULL, texts={"ic": "%6"})
    log.log_ic("c", "o", "ip", "Lobby", "a")
    log.log_ic("c", "o", "ip", "Court", "b")
    assert (tmp_path / "2024-01-05.log").read_text(encoding="utf-8") == "a\nb\n"


def test_fullarea_logging_writes_per_area(tmp_path):
    log = make(tmp_path, log_type=LogType.FULLAREA, texts={"ic": "%6"})
    log.log_ic("c", "o", "ip", "Lobby", "a")
    log.log_ic("c", "o", "ip", "Court", "b")
    assert (tmp_path / "Lobby_2024-01-05.log").read_text(encoding="utf-8") == "a\n"
    assert (tmp_path / "Court_2024-01-05.log").read_text(encoding="utf-8") == "b\n"


def test_buffer_returns_copy(tmp_path):
    log = make(tmp_path)
    log.log_kick("mod", "bad")
    copy = log.buffer("SERVER")
    copy.clear()
    assert len(log.buffer("SERVER")) == 1