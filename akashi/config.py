"""Server configuration read from the ``config`` directory."""

from __future__ import annotations

import configparser
import enum
import json
import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"[+-]?\d+")
_FALSE_STRINGS = {"", "0", "false"}
_GENERAL = "General"

_REQUIRED_DIRS = ("config", "config/text")
_REQUIRED_FILES = (
    "config/config.ini",
    "config/areas.ini",
    "config/backgrounds.txt",
    "config/characters.txt",
    "config/music.json",
    "config/discord.ini",
    "config/text/8ball.txt",
    "config/text/gimp.txt",
    "config/text/praise.txt",
    "config/text/reprimands.txt",
    "config/text/commandhelp.json",
    "config/text/cdns.txt",
)
DEFAULT_CDNS = ("cdn.discord.com",)
DEFAULT_WEBHOOK_COLOR = "13312842"


class AuthType(enum.Enum):
    """How moderators authenticate."""

    SIMPLE = "simple"
    ADVANCED = "advanced"


class LogType(enum.Enum):
    """How the server writes its logs."""

    MODCALL = "modcall"
    FULL = "full"
    FULLAREA = "fullarea"


@dataclass(frozen=True)
class CommandHelp:
    """Usage and description of a command."""

    usage: str = ""
    text: str = ""


class ConfigError(Exception):
    """The configuration is missing or malformed."""


def _to_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    raw = raw.strip()
    return int(raw) if _INT_RE.fullmatch(raw) else None


def _to_bool(raw: str) -> bool:
    return raw.strip().lower() not in _FALSE_STRINGS


def _read_lines(path: Path) -> list[str]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        return []
    return [line.strip() for line in text.splitlines()]


def _read_json(path: Path) -> object:
    with path.open(encoding="utf-8") as handle:
        return json.load(handle)


def _length_to_int(value: object) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(round(value))
    if isinstance(value, str):
        return _to_int(value) or 0
    return 0


class _IniFile:
    """An INI file with slash-separated ``section/key`` lookups."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._parser = self._new_parser()
        self.reload()

    @staticmethod
    def _new_parser() -> configparser.ConfigParser:
        parser = configparser.ConfigParser(
            interpolation=None, strict=False, allow_no_value=True, default_section="\x00"
        )
        parser.optionxform = str  # keys are case-sensitive
        return parser

    def reload(self) -> None:
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError:
            text = ""
        parser = self._new_parser()
        try:
            parser.read_string(text)
        except configparser.MissingSectionHeaderError:
            parser = self._new_parser()
            parser.read_string(f"[{_GENERAL}]\n{text}")
        self._parser = parser

    @staticmethod
    def _split(key: str) -> tuple[str, str]:
        section, _, option = key.rpartition("/")
        return section or _GENERAL, option

    def get(self, key: str) -> str | None:
        section, option = self._split(key)
        if not self._parser.has_section(section):
            return None
        value = self._parser.get(section, option, fallback=None)
        if value is not None and len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        return value

    def set(self, key: str, value: object) -> None:
        section, option = self._split(key)
        if not self._parser.has_section(section):
            self._parser.add_section(section)
        self._parser.set(section, option, str(value))
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as handle:
            self._parser.write(handle, space_around_delimiters=False)

    def groups(self) -> list[str]:
        return sorted(s for s in self._parser.sections() if s != _GENERAL)


class ConfigManager:
    """Access to every setting and data file the server reads."""

    def __init__(self, root: str | Path = ".", clock: Callable[[], float] = time.monotonic) -> None:
        self.root = Path(root)
        self._clock = clock
        config = self.root / "config"
        self._settings = _IniFile(config / "config.ini")
        self._discord = _IniFile(config / "discord.ini")
        self._areas = _IniFile(config / "areas.ini")
        self._logtext = _IniFile(config / "text" / "logtext.ini")
        self._magic_8ball: list[str] = []
        self._praises: list[str] = []
        self._reprimands: list[str] = []
        self._gimps: list[str] = []
        self._cdns: list[str] = []
        self._music_list: dict[str, tuple[str, int]] = {}
        self._ordered_songs: list[str] = []
        self._commands_help: dict[str, CommandHelp] = {}
        self._started_at: float | None = None

    # -- helpers -----------------------------------------------------------

    def _path(self, relative: str) -> Path:
        return self.root / relative

    def _value(self, ini: _IniFile, key: str, default: str) -> str:
        raw = ini.get(key)
        return default if raw is None else raw

    def _bool(self, ini: _IniFile, key: str, default: bool) -> bool:
        raw = ini.get(key)
        return default if raw is None else _to_bool(raw)

    def _int(self, ini: _IniFile, key: str, default: int) -> int:
        raw = ini.get(key)
        if raw is None:
            return default
        value = _to_int(raw)
        if value is None:
            logger.warning("%s is not an int!", key.rpartition("/")[2])
            return default
        return value

    def _plain_int(self, key: str, default: int) -> int:
        raw = self._settings.get(key)
        if raw is None:
            return default
        value = _to_int(raw)
        return 0 if value is None else value

    # -- loading -----------------------------------------------------------

    def verify_server_config(self) -> None:
        """Check that all configuration is present and valid, then load text lists.

        Raises :class:`ConfigError` on the first problem found.
        """
        for directory in _REQUIRED_DIRS:
            if not self._path(directory).is_dir():
                raise ConfigError(f"{directory}/ does not exist!")
        for filename in _REQUIRED_FILES:
            if not self._path(filename).is_file():
                raise ConfigError(f"{filename} does not exist!")

        if not _IniFile(self._path("config/areas.ini")).groups():
            raise ConfigError("areas.ini is invalid!")

        for port in ("ms_port", "port"):
            raw = self._settings.get(f"Options/{port}")
            if raw is not None and _to_int(raw) is None:
                raise ConfigError(f"{port} is not a valid port!")
        if not self._bool(self._settings, "Options/webao_enable", False):
            self._settings.set("Options/webao_port", -1)
        else:
            raw = self._settings.get("Options/webao_port")
            if raw is not None and _to_int(raw) is None:
                raise ConfigError("webao_port is not a valid port!")
        auth = self._value(self._settings, "Options/auth", "simple").lower()
        if auth not in ("simple", "advanced"):
            raise ConfigError("auth is not a valid auth type!")

        self._magic_8ball = self.load_config_file("8ball")
        self._praises = self.load_config_file("praise")
        self._reprimands = self.load_config_file("reprimands")
        self._gimps = self.load_config_file("gimp")
        self._cdns = self.load_config_file("cdns") or list(DEFAULT_CDNS)

        self._started_at = self._clock()

    def reload_settings(self) -> None:
        """Re-read the server, webhook and log text settings from disk."""
        self._settings.reload()
        self._discord.reload()
        self._logtext.reload()

    def load_config_file(self, filename: str) -> list[str]:
        """Return the trimmed lines of ``config/text/<filename>.txt``."""
        return _read_lines(self._path(f"config/text/{filename}.txt"))

    def charlist(self) -> list[str]:
        return _read_lines(self._path("config/characters.txt"))

    def backgrounds(self) -> list[str]:
        return _read_lines(self._path("config/backgrounds.txt"))

    def iprange_bans(self) -> list[str]:
        return _read_lines(self._path("config/iprange_bans.txt"))

    def musiclist(self) -> dict[str, tuple[str, int]]:
        """Load the music list, mapping each entry to ``(real name, length)``.

        A malformed file yields an empty list; the server runs without music.
        """
        try:
            document = _read_json(self._path("config/music.json"))
        except (OSError, ValueError) as error:
            logger.warning("Unable to load musiclist. The following error was encounted : %s", error)
            return {}

        music: dict[str, tuple[str, int]] = {}
        ordered: list[str] = []
        for category in document if isinstance(document, list) else []:
            if not isinstance(category, dict):
                category = {}
            name = category.get("category")
            if isinstance(name, str) and name:
                music[name] = (name, 0)
                ordered.append(name)
            else:
                logger.warning("Category name not set. This may cause the musiclist to be displayed incorrectly.")
            songs = category.get("songs")
            for song in songs if isinstance(songs, list) else []:
                if not isinstance(song, dict):
                    song = {}
                song_name = song.get("name")
                song_name = song_name if isinstance(song_name, str) else ""
                real_name = song.get("realname")
                if not isinstance(real_name, str) or not real_name:
                    real_name = song_name
                music[song_name] = (real_name, _length_to_int(song.get("length")))
                ordered.append(song_name)

        self._music_list = music
        self._ordered_songs = ordered
        return dict(music)

    def ordered_songs(self) -> list[str]:
        """Return the music entries in file order, as of the last :meth:`musiclist`."""
        return list(self._ordered_songs)

    def load_command_help(self) -> None:
        """Load command usage and descriptions from ``commandhelp.json``."""
        try:
            document = _read_json(self._path("config/text/commandhelp.json"))
        except (OSError, ValueError) as error:
            logger.warning("Unable to load help information. The following error occurred: %s", error)
            document = []
        for entry in document if isinstance(document, list) else []:
            if not isinstance(entry, dict):
                continue
            usage = entry.get("usage")
            text = entry.get("text")
            info = CommandHelp(
                usage=usage if isinstance(usage, str) else "",
                text=text if isinstance(text, str) else "",
            )
            names = entry.get("names")
            for name in names if isinstance(names, list) else []:
                if isinstance(name, str) and name:
                    self._commands_help[name] = info

    def command_help(self, command_name: str) -> CommandHelp:
        return self._commands_help.get(command_name, CommandHelp())

    def raw_area_names(self) -> list[str]:
        """Return the area section names of ``areas.ini``, sorted as text."""
        return self._areas.groups()

    def sanitized_area_names(self) -> list[str]:
        """Return area names ordered by their numeric prefix, without that prefix."""
        names = sorted(self._areas.groups(), key=lambda name: _to_int(name.split(":")[0]) or 0)
        return [":".join(name.split(":")[1:]) for name in names]

    # -- options -----------------------------------------------------------

    def bind_ip(self) -> str:
        return self._value(self._settings, "Options/bind_ip", "all")

    def max_players(self) -> int:
        return self._int(self._settings, "Options/max_players", 100)

    def server_port(self) -> int:
        return self._plain_int("Options/port", 27016)

    def server_description(self) -> str:
        return self._value(self._settings, "Options/server_description", "This is my flashy new server!")

    def server_name(self) -> str:
        return self._value(self._settings, "Options/server_name", "An Unnamed Server")

    def motd(self) -> str:
        return self._value(self._settings, "Options/motd", "MOTD not set")

    def set_motd(self, motd: str) -> None:
        self._settings.set("Options/motd", motd)

    def webao_enabled(self) -> bool:
        return self._bool(self._settings, "Options/webao_enable", False)

    def webao_port(self) -> int:
        return self._plain_int("Options/webao_port", 27017)

    def auth_type(self) -> AuthType:
        value = self._value(self._settings, "Options/auth", "simple").upper()
        try:
            return AuthType[value]
        except KeyError:
            raise ConfigError(f"{value.lower()} is not a valid auth type!") from None

    def set_auth_type(self, auth: AuthType) -> None:
        self._settings.set("Options/auth", auth.name.lower())

    def modpass(self) -> str:
        return self._value(self._settings, "Options/modpass", "changeme")

    def log_buffer(self) -> int:
        return self._int(self._settings, "Options/logbuffer", 500)

    def logging_type(self) -> LogType:
        value = self._value(self._settings, "Options/logging", "modcall").upper()
        try:
            return LogType[value]
        except KeyError:
            raise ConfigError(f"{value.lower()} is not a valid logging type!") from None

    def max_statements(self) -> int:
        return self._int(self._settings, "Options/maximum_statements", 10)

    def multiclient_limit(self) -> int:
        return self._int(self._settings, "Options/multiclient_limit", 15)

    def max_characters(self) -> int:
        return self._int(self._settings, "Options/maximum_characters", 256)

    def message_floodguard(self) -> int:
        return self._int(self._settings, "Options/message_floodguard", 250)

    def global_message_floodguard(self) -> int:
        return self._int(self._settings, "Options/global_message_floodguard", 0)

    def asset_url(self) -> str:
        """Return the asset URL, or an empty string if it is not a valid URL."""
        url = self._value(self._settings, "Options/asset_url", "")
        try:
            urlsplit(url)
        except ValueError:
            logger.warning("asset_url is not a valid url!")
            return ""
        return url

    def afk_timeout(self) -> int:
        return self._int(self._settings, "Options/afk_timeout", 300)

    def dice_max_value(self) -> int:
        return self._int(self._settings, "Dice/max_value", 100)

    def dice_max_dice(self) -> int:
        return self._int(self._settings, "Dice/max_dice", 100)

    # -- discord -----------------------------------------------------------

    def discord_webhook_enabled(self) -> bool:
        return self._bool(self._discord, "Discord/webhook_enabled", False)

    def discord_modcall_webhook_enabled(self) -> bool:
        return self._bool(self._discord, "Discord/webhook_modcall_enabled", False)

    def discord_modcall_webhook_url(self) -> str:
        return self._value(self._discord, "Discord/webhook_modcall_url", "")

    def discord_modcall_webhook_content(self) -> str:
        return self._value(self._discord, "Discord/webhook_modcall_content", "")

    def discord_modcall_webhook_sendfile(self) -> bool:
        return self._bool(self._discord, "Discord/webhook_modcall_sendfile", False)

    def discord_ban_webhook_enabled(self) -> bool:
        return self._bool(self._discord, "Discord/webhook_ban_enabled", False)

    def discord_ban_webhook_url(self) -> str:
        return self._value(self._discord, "Discord/webhook_ban_url", "")

    def discord_uptime_enabled(self) -> bool:
        return self._bool(self._discord, "Discord/webhook_uptime_enabled", False)

    def discord_uptime_time(self) -> int:
        return self._int(self._discord, "Discord/webhook_uptime_time", 60)

    def discord_uptime_webhook_url(self) -> str:
        return self._value(self._discord, "Discord/webhook_uptime_url", "")

    def discord_webhook_color(self) -> str:
        return self._value(self._discord, "Discord/webhook_color", DEFAULT_WEBHOOK_COLOR) or DEFAULT_WEBHOOK_COLOR

    # -- passwords ---------------------------------------------------------

    def password_requirements(self) -> bool:
        return self._bool(self._settings, "Password/password_requirements", True)

    def password_min_length(self) -> int:
        return self._int(self._settings, "Password/pass_min_length", 8)

    def password_max_length(self) -> int:
        return self._int(self._settings, "Password/pass_max_length", 0)

    def password_require_mix_case(self) -> bool:
        return self._bool(self._settings, "Password/pass_required_mix_case", True)

    def password_require_numbers(self) -> bool:
        return self._bool(self._settings, "Password/pass_required_numbers", True)

    def password_require_special_characters(self) -> bool:
        return self._bool(self._settings, "Password/pass_required_special", True)

    def password_can_contain_username(self) -> bool:
        return self._bool(self._settings, "Password/pass_can_contain_username", False)

    # -- texts -------------------------------------------------------------

    def log_text(self, log_type: str) -> str:
        return self._value(self._logtext, f"LogConfiguration/{log_type}", "")

    def magic_8ball_answers(self) -> list[str]:
        return list(self._magic_8ball)

    def praise_list(self) -> list[str]:
        return list(self._praises)

    def reprimands_list(self) -> list[str]:
        return list(self._reprimands)

    def gimp_list(self) -> list[str]:
        return list(self._gimps)

    def cdn_list(self) -> list[str]:
        return list(self._cdns)

    # -- advertiser --------------------------------------------------------

    def advertise_server(self) -> bool:
        return self._bool(self._settings, "Advertiser/advertise", True)

    def advertiser_debug(self) -> bool:
        return self._bool(self._settings, "Advertiser/debug", True)

    def advertiser_ip(self) -> str:
        return self._value(self._settings, "Advertiser/ms_ip", "")

    def advertiser_hostname(self) -> str:
        return self._value(self._settings, "Advertiser/hostname", "")

    def advertiser_cloudflare_mode(self) -> bool:
        return self._bool(self._settings, "Advertiser/cloudflare_enabled", False)

    def uptime(self) -> int:
        """Milliseconds since the configuration was verified, 0 before that."""
        if self._started_at is None:
            return 0
        return int((self._clock() - self._started_at) * 1000)