"""Permission flags, roles and a role registry backed by INI files."""

from __future__ import annotations

import configparser
import dataclasses
import enum
from dataclasses import dataclass
from pathlib import Path

_ALL_BITS = 0xFFFFFFFF


class Permission(enum.IntFlag):
    """Permissions a role may grant."""

    NONE = 0
    KICK = 1 << 0
    BAN = 1 << 1
    BGLOCK = 1 << 2
    MODIFY_USERS = 1 << 3
    CM = 1 << 4
    GLOBAL_TIMER = 1 << 5
    EVI_MOD = 1 << 6
    MOTD = 1 << 7
    ANNOUNCE = 1 << 8
    MODCHAT = 1 << 9
    MUTE = 1 << 10
    UNCM = 1 << 11
    SAVETEST = 1 << 12
    FORCE_CHARSELECT = 1 << 13
    BYPASS_LOCKS = 1 << 14
    IGNORE_BGLIST = 1 << 15
    SEND_NOTICE = 1 << 16
    JUKEBOX = 1 << 17
    SUPER = _ALL_BITS


GRANULAR_PERMISSIONS: tuple[Permission, ...] = tuple(Permission(1 << bit) for bit in range(18))

PERMISSION_CAPTIONS: dict[Permission, str] = {
    permission: permission.name.lower() for permission in GRANULAR_PERMISSIONS
}


def _normalise(value: int) -> Permission:
    return Permission(int(value) & _ALL_BITS)


@dataclass
class ACLRole:
    """A set of permission flags."""

    permissions: Permission = Permission.NONE

    def __post_init__(self) -> None:
        self.permissions = _normalise(self.permissions)

    def check_permission(self, permission: Permission) -> bool:
        """Return whether every bit of ``permission`` is granted.

        Checking ``NONE`` is true only for a role without any permission.
        """
        permission = _normalise(permission)
        if permission == Permission.NONE:
            return self.permissions == Permission.NONE
        return (self.permissions & permission) == permission

    def set_permission(self, permission: Permission, mode: bool) -> None:
        """Grant ``permission`` if ``mode`` is true, revoke it otherwise."""
        current = int(self.permissions)
        bits = int(permission) & _ALL_BITS
        self.permissions = _normalise(current | bits if mode else current & ~bits)


class ACLRolesHandler:
    """Registry of named roles; identifiers are case-insensitive."""

    NONE_ID = "NONE"
    SUPER_ID = "SUPER"

    _READONLY: dict[str, Permission] = {
        NONE_ID: Permission.NONE,
        SUPER_ID: Permission.SUPER,
    }

    def __init__(self) -> None:
        self._roles: dict[str, ACLRole] = {}

    @staticmethod
    def _key(role_id: str) -> str:
        return role_id.upper()

    def role_exists(self, role_id: str) -> bool:
        key = self._key(role_id)
        return key in self._READONLY or key in self._roles

    def get_role(self, role_id: str) -> ACLRole:
        """Return a copy of the role, or an empty role if it is unknown."""
        key = self._key(role_id)
        if key in self._READONLY:
            return ACLRole(self._READONLY[key])
        role = self._roles.get(key)
        return dataclasses.replace(role) if role is not None else ACLRole()

    def insert_role(self, role_id: str, role: ACLRole) -> bool:
        """Store a role, replacing any existing one; read-only roles are refused."""
        key = self._key(role_id)
        if key in self._READONLY:
            return False
        self._roles[key] = dataclasses.replace(role)
        return True

    def remove_role(self, role_id: str) -> bool:
        key = self._key(role_id)
        if key in self._READONLY:
            return False
        return self._roles.pop(key, None) is not None

    def clear_roles(self) -> None:
        self._roles.clear()

    def load_file(self, filename: str | Path) -> None:
        """Replace the current roles with those stored in an INI file."""
        parser = configparser.ConfigParser(interpolation=None)
        with open(filename, encoding="utf-8") as handle:
            parser.read_file(handle)

        loaded: dict[str, ACLRole] = {}
        for section in parser.sections():
            key = self._key(section)
            if key in self._READONLY:
                continue
            role = ACLRole()
            for permission, caption in PERMISSION_CAPTIONS.items():
                if parser.getboolean(section, caption, fallback=False):
                    role.set_permission(permission, True)
            loaded[key] = role

        self._roles = loaded

    def save_file(self, filename: str | Path) -> None:
        """Write the current roles to an INI file, overwriting it."""
        parser = configparser.ConfigParser(interpolation=None)
        for key, role in self._roles.items():
            parser[key] = {
                caption: "true" if role.check_permission(permission) else "false"
                for permission, caption in PERMISSION_CAPTIONS.items()
            }
        with open(filename, "w", encoding="utf-8") as handle:
            parser.write(handle)