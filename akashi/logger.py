"""In-memory per-area log buffers written out according to the logging type."""

from __future__ import annotations

import re
from collections import deque
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from akashi.config import LogType
from akashi.log_writers import FullLogWriter, ModcallLogWriter

SERVER_AREA = "SERVER"

_PLACEHOLDER = re.compile(r"%(\d{1,2})")

DEFAULT_LOGTEXT = {
    "ic": "[%1][%5][IC][%2(%3)][%4]%6",
    "ooc": "[%1][%5][OOC][%2(%3)][%4]%6",
    "login": "[%1][LOGIN][%2][%3][%4(%5)]",
    "cmdlogin": "[%1][%2][LOGIN][%5][%3(%4)]",
    "cmdrootpass": "[%1][%2][ROOTPASS][%5][%3(%4)]",
    "adduser": "[%1][%2][USERADD][%6][%3(%4)]%5",
    "cmd": "[%1][%2][CMD][%7][%3(%4)]/%5 %6",
    "kick": "[%1][%2][KICK][%3]",
    "ban": "[%1][%2][BAN][%3][%4]",
    "modcall": "[%1][%2][MODCALL][%5][%3(%4)]",
    "connect": "[%1][CONNECT][%2][%3][%4]",
}


def _fill(template: str, *args: str) -> str:
    """Replace ``%1``..``%n`` in ``template`` with the given arguments."""

    def substitute(match: re.Match) -> str:
        index = int(match.group(1))
        return args[index - 1] if 1 <= index <= len(args) else match.group(0)

    return _PLACEHOLDER.sub(substitute, template)


def _timestamp(moment: datetime) -> str:
    return f"{moment:%a %B} {moment.day} {moment:%Y | %H:%M:%S}"


class ULogger:
    """Formats log events, keeps a bounded buffer per area and hands entries to a writer."""

    def __init__(
        self,
        config,
        log_dir: str | Path = "logs",
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._config = config
        self._clock = clock
        self._log_type = config.logging_type()
        self._buffers: dict[str, deque[str]] = {}
        self._full_writer: FullLogWriter | None = None
        self._modcall_writer: ModcallLogWriter | None = None
        if self._log_type is LogType.MODCALL:
            self._modcall_writer = ModcallLogWriter(log_dir, clock=clock)
        else:
            self._full_writer = FullLogWriter(log_dir, clock=clock)
        self._logtext = {
            key: config.log_text(key) or default for key, default in DEFAULT_LOGTEXT.items()
        }

    def _entry(self, kind: str, *args: str) -> str:
        return _fill(self._logtext[kind] + "\n", _timestamp(self._clock()), *args)

    def _update_area_buffer(self, area_name: str, entry: str) -> None:
        buffer = self._buffers.setdefault(area_name, deque())
        if len(buffer) > self._config.log_buffer():
            buffer.popleft()
        buffer.append(entry)

        if self._log_type is LogType.FULL:
            self._full_writer.flush(entry)
        elif self._log_type is LogType.FULLAREA:
            self._full_writer.flush(entry, area_name)

    def log_ic(self, char_name: str, ooc_name: str, ipid: str, area_name: str, message: str) -> None:
        entry = self._entry("ic", char_name, ooc_name, ipid, area_name, message)
        self._update_area_buffer(area_name, entry)

    def log_ooc(self, char_name: str, ooc_name: str, ipid: str, area_name: str, message: str) -> None:
        entry = self._entry("ooc", char_name, ooc_name, ipid, area_name, message)
        self._update_area_buffer(area_name, entry)

    def log_login(
        self,
        char_name: str,
        ooc_name: str,
        moderator_name: str,
        ipid: str,
        area_name: str,
        success: bool,
    ) -> None:
        outcome = f"{'SUCCESS' if success else 'FAILED'}][{moderator_name}"
        entry = self._entry("login", outcome, ipid, char_name, ooc_name)
        self._update_area_buffer(area_name, entry)

    def log_cmd(
        self,
        char_name: str,
        ipid: str,
        ooc_name: str,
        command: str,
        args: list[str],
        area_name: str,
    ) -> None:
        """Log a command; arguments of commands carrying passwords are left out."""
        if command == "login":
            entry = self._entry("cmdlogin", area_name, char_name, ooc_name, ipid)
        elif command == "rootpass":
            entry = self._entry("cmdrootpass", area_name, char_name, ooc_name, ipid)
        elif command == "adduser" and args:
            entry = self._entry("adduser", area_name, char_name, ooc_name, args[0], ipid)
        else:
            entry = self._entry("cmd", area_name, char_name, ooc_name, command, " ".join(args), ipid)
        self._update_area_buffer(area_name, entry)

    def log_kick(self, moderator: str, target_ipid: str) -> None:
        self._update_area_buffer(SERVER_AREA, self._entry("kick", moderator, target_ipid))

    def log_ban(self, moderator: str, target_ipid: str, duration: str) -> None:
        self._update_area_buffer(SERVER_AREA, self._entry("ban", moderator, target_ipid, duration))

    def log_modcall(self, char_name: str, ipid: str, ooc_name: str, area_name: str) -> None:
        """Log a modcall; in modcall mode the area's buffer is written to a report."""
        entry = self._entry("modcall", area_name, char_name, ooc_name, ipid)
        self._update_area_buffer(area_name, entry)
        if self._log_type is LogType.MODCALL:
            self._modcall_writer.flush(area_name, self.buffer(area_name))

    def log_connection_attempt(self, ip_address: str, ipid: str, hwid: str) -> None:
        self._update_area_buffer(SERVER_AREA, self._entry("connect", ip_address, ipid, hwid))

    def buffer(self, area_name: str) -> list[str]:
        """Return the buffered entries of an area, oldest first."""
        return list(self._buffers.get(area_name, ()))