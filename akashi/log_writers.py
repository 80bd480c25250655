"""Writers that persist log entries to files."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path


class FullLogWriter:
    """Appends every entry to a daily log file, optionally one per area."""

    def __init__(self, log_dir: str | Path = "logs", clock: Callable[[], datetime] = datetime.now) -> None:
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._clock = clock

    def flush(self, entry: str, area_name: str | None = None) -> Path:
        """Append ``entry`` to today's log file and return its path."""
        date = self._clock().strftime("%Y-%m-%d")
        name = f"{date}.log" if area_name is None else f"{area_name}_{date}.log"
        path = self.log_dir / name
        with path.open("a", encoding="utf-8") as handle:
            handle.write(entry)
        return path


class ModcallLogWriter:
    """Dumps an area's log buffer into a report file when a modcall happens."""

    def __init__(self, log_dir: str | Path = "logs", clock: Callable[[], datetime] = datetime.now) -> None:
        self.log_dir = Path(log_dir) / "modcall"
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._clock = clock

    def flush(self, area_name: str, buffer: Iterable[str]) -> Path:
        """Write every buffered entry to a timestamped report and return its path."""
        stamp = self._clock().strftime("%Y-%m-%d_%H%M%S")
        path = self.log_dir / f"report_{area_name}_{stamp}.log"
        with path.open("a", encoding="utf-8") as handle:
            handle.writelines(buffer)
        return path