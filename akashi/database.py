"""Persistent storage of bans and moderator accounts in SQLite."""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import sqlite3
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DB_VERSION = 3
SALT_LENGTH = 16
PBKDF2_ITERATIONS = 100_000
PERMANENT_DURATION = -2

_BAN_LOOKUPS = {"banid": "ID", "hdid": "HDID", "ipid": "IPID"}
_BAN_UPDATES = {"reason": ("REASON", str), "duration": ("DURATION", int)}


def hash_password(salt: bytes, password: str) -> str:
    """Return the hex PBKDF2-SHA256 hash of ``password`` with ``salt``."""
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return digest.hex()


def random_salt(size: int = SALT_LENGTH) -> bytes:
    """Return ``size`` cryptographically random bytes."""
    return secrets.token_bytes(size)


@dataclass
class BanInfo:
    """A ban record. A duration of -2 means the ban never expires."""

    id: int | None = None
    ipid: str = ""
    hdid: str = ""
    ip: str = ""
    time: int = 0
    reason: str = ""
    duration: int = 0
    moderator: str = ""

    @classmethod
    def _from_row(cls, row: tuple) -> "BanInfo":
        return cls(
            id=row[0],
            ipid=row[1] or "",
            hdid=row[2] or "",
            ip=row[3] or "",
            time=int(row[4] or 0),
            reason=row[5] or "",
            duration=int(row[6] or 0),
            moderator=row[7] or "",
        )


class Database:
    """Bans and users stored in an SQLite file."""

    def __init__(self, path: str | Path = "config/akashi.db", clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        if str(path) != ":memory:":
            file = Path(path)
            if not file.exists():
                logger.warning("Database Info: Database not found. Attempting to create new database.")
        self._conn = sqlite3.connect(str(path))
        version = self._conn.execute("PRAGMA user_version").fetchone()[0]
        with self._conn:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS bans ('ID' INTEGER, 'IPID' TEXT, 'HDID' TEXT, 'IP' TEXT, "
                "'TIME' INTEGER, 'REASON' TEXT, 'DURATION' INTEGER, 'MODERATOR' TEXT, "
                "PRIMARY KEY('ID' AUTOINCREMENT))"
            )
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS users ('ID' INTEGER, 'USERNAME' TEXT, 'SALT' TEXT, "
                "'PASSWORD' TEXT, 'ACL' TEXT, PRIMARY KEY('ID' AUTOINCREMENT))"
            )
        if version != DB_VERSION:
            self._migrate(version)

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    def _migrate(self, version: int) -> None:
        if version not in (0, 1, 2):
            return
        with self._conn:
            if version <= 0:
                columns = {row[1].upper() for row in self._conn.execute("PRAGMA table_info(bans)")}
                if "MODERATOR" not in columns:
                    self._conn.execute("ALTER TABLE bans ADD COLUMN MODERATOR TEXT")
            if version <= 1:
                self._conn.execute("PRAGMA user_version = 1")
            self._conn.execute("UPDATE users SET ACL = 'SUPER' WHERE USERNAME = 'root'")
            self._conn.execute(f"PRAGMA user_version = {DB_VERSION}")

    # -- bans --------------------------------------------------------------

    def _latest_ban(self, column: str, value: str) -> tuple[bool, BanInfo | None]:
        row = self._conn.execute(
            f"SELECT * FROM bans WHERE {column} = ? ORDER BY TIME DESC LIMIT 1", (value,)
        ).fetchone()
        if row is None:
            return False, None
        ban = BanInfo._from_row(row)
        if ban.duration == PERMANENT_DURATION:
            return True, ban
        return ban.time + ban.duration > int(self._clock()), ban

    def is_ipid_banned(self, ipid: str) -> tuple[bool, BanInfo | None]:
        """Return whether the latest ban on ``ipid`` is active, and that ban."""
        return self._latest_ban("IPID", ipid)

    def is_hdid_banned(self, hdid: str) -> tuple[bool, BanInfo | None]:
        """Return whether the latest ban on ``hdid`` is active, and that ban."""
        return self._latest_ban("HDID", hdid)

    def _latest_ban_id(self, column: str, value: str) -> int | None:
        row = self._conn.execute(
            f"SELECT ID FROM bans WHERE {column} = ? ORDER BY TIME DESC LIMIT 1", (value,)
        ).fetchone()
        return None if row is None else row[0]

    def ban_id_for_hdid(self, hdid: str) -> int | None:
        return self._latest_ban_id("HDID", hdid)

    def ban_id_for_ip(self, ip: str) -> int | None:
        return self._latest_ban_id("IP", str(ip))

    def recent_bans(self) -> list[BanInfo]:
        """Return the five most recent bans, oldest first."""
        rows = self._conn.execute("SELECT * FROM bans ORDER BY TIME DESC LIMIT 5").fetchall()
        return [BanInfo._from_row(row) for row in reversed(rows)]

    def add_ban(self, ban: BanInfo) -> int:
        """Store ``ban`` and return its new identifier."""
        with self._conn:
            cursor = self._conn.execute(
                "INSERT INTO bans(IPID, HDID, IP, TIME, REASON, DURATION, MODERATOR) VALUES(?, ?, ?, ?, ?, ?, ?)",
                (ban.ipid, ban.hdid, str(ban.ip), int(ban.time), ban.reason, int(ban.duration), ban.moderator),
            )
        return cursor.lastrowid

    def invalidate_ban(self, ban_id: int) -> bool:
        """Expire a ban by setting its duration to zero; false if it does not exist."""
        if self._conn.execute("SELECT DURATION FROM bans WHERE ID = ?", (ban_id,)).fetchone() is None:
            return False
        with self._conn:
            self._conn.execute("UPDATE bans SET DURATION = 0 WHERE ID = ?", (ban_id,))
        return True

    def ban_info(self, lookup_type: str, value: str) -> list[BanInfo]:
        """Return bans matching ``value`` by ``banid``, ``hdid`` or ``ipid``, last row first."""
        column = _BAN_LOOKUPS.get(lookup_type)
        if column is None:
            raise ValueError(f"Invalid ban lookup type: {lookup_type!r}")
        rows = self._conn.execute(f"SELECT * FROM bans WHERE {column} = ?", (value,)).fetchall()
        return [BanInfo._from_row(row) for row in reversed(rows)]

    def update_ban(self, ban_id: int, field: str, value: object) -> None:
        """Change the ``reason`` or ``duration`` of a ban."""
        try:
            column, convert = _BAN_UPDATES[field]
        except KeyError:
            raise ValueError(f"Invalid ban field: {field!r}") from None
        with self._conn:
            self._conn.execute(f"UPDATE bans SET {column} = ? WHERE ID = ?", (convert(value), ban_id))

    # -- users -------------------------------------------------------------

    def create_user(self, username: str, salt: bytes, password: str, acl: str) -> bool:
        """Add a user; false if the name is taken."""
        if self._conn.execute("SELECT ACL FROM users WHERE USERNAME = ?", (username,)).fetchone():
            return False
        with self._conn:
            self._conn.execute(
                "INSERT INTO users(USERNAME, SALT, PASSWORD, ACL) VALUES(?, ?, ?, ?)",
                (username, salt.hex(), hash_password(salt, password), acl),
            )
        return True

    def delete_user(self, username: str) -> bool:
        """Remove a user; ``root`` can never be removed."""
        if username == "root":
            return False
        with self._conn:
            cursor = self._conn.execute("DELETE FROM users WHERE USERNAME = ?", (username,))
        return cursor.rowcount > 0

    def get_acl(self, username: str) -> str | None:
        if not username:
            return None
        row = self._conn.execute("SELECT ACL FROM users WHERE USERNAME = ?", (username,)).fetchone()
        return None if row is None else row[0]

    def authenticate(self, username: str, password: str) -> bool:
        """Check a password, upgrading a hash stored with a short salt on success."""
        row = self._conn.execute(
            "SELECT SALT, PASSWORD FROM users WHERE USERNAME = ?", (username,)
        ).fetchone()
        if row is None:
            return False
        try:
            salt = bytes.fromhex(row[0] or "")
        except ValueError:
            return False
        valid = hmac.compare_digest(hash_password(salt, password), row[1] or "")
        if valid and len(salt) < SALT_LENGTH:
            self.update_password(username, password)
        return valid

    def update_acl(self, username: str, acl: str) -> bool:
        if self._conn.execute("SELECT ACL FROM users WHERE USERNAME = ?", (username,)).fetchone() is None:
            return False
        with self._conn:
            self._conn.execute("UPDATE users SET ACL = ? WHERE USERNAME = ?", (acl, username))
        return True

    def users(self) -> list[str]:
        """Return all user names in creation order."""
        return [row[0] for row in self._conn.execute("SELECT USERNAME FROM users ORDER BY ID")]

    def update_password(self, username: str, password: str) -> None:
        """Store a new password for ``username`` under a fresh salt."""
        salt = random_salt(SALT_LENGTH)
        with self._conn:
            self._conn.execute(
                "UPDATE users SET PASSWORD = ?, SALT = ? WHERE USERNAME = ?",
                (hash_password(salt, password), salt.hex(), username),
            )