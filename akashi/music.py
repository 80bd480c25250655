"""The server music list and per-area custom additions."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import NamedTuple

from akashi.aopacket import AOPacket
from akashi.config import DEFAULT_CDNS

SONG_EXTENSIONS = (".opus", ".ogg", ".mp3", ".wav")
FM_HEADER = "FM"


class Song(NamedTuple):
    """What a music list entry points to: its real name and length in seconds."""

    real_name: str
    duration: int


def validate_song(song_name: str, approved_cdns: Iterable[str]) -> bool:
    """Return whether ``song_name`` is a local audio file or one on an approved CDN."""
    if "/" in song_name:
        if not (song_name.startswith("https://") or song_name.startswith("http://")):
            return False
        lowered = song_name.lower()
        if not any(
            lowered.startswith(f"https://{cdn}/".lower()) or lowered.startswith(f"http://{cdn}/".lower())
            for cdn in approved_cdns
        ):
            return False
    return song_name.endswith(SONG_EXTENSIONS)


def _with_default_extension(name: str) -> str:
    return name if "." in name else f"{name}.opus"


AreaListener = Callable[[AOPacket, int], None]
UserListener = Callable[[AOPacket, int], None]


class MusicManager:
    """Combines the root music list with custom lists kept for each area.

    ``area_listener(packet, area_id)`` receives the new list whenever an
    area's list changes; ``user_listener(packet, user_id)`` receives it when
    a user joins an area.
    """

    def __init__(
        self,
        cdns: Iterable[str],
        root_list: Mapping[str, tuple[str, int]],
        root_ordered: Iterable[str],
        area_listener: AreaListener | None = None,
        user_listener: UserListener | None = None,
    ) -> None:
        self._root_list = {name: Song(*entry) for name, entry in root_list.items()}
        self._root_ordered = list(root_ordered)
        self._cdns = list(cdns) or list(DEFAULT_CDNS)
        self._custom_lists: dict[int, dict[str, Song]] = {}
        self._customs_ordered: dict[int, list[str]] = {}
        self._global_enabled: dict[int, bool] = {}
        self._area_listener = area_listener
        self._user_listener = user_listener

    def _packet(self, area_id: int) -> AOPacket:
        return AOPacket(FM_HEADER, self.musiclist(area_id))

    def _announce(self, area_id: int) -> None:
        if self._area_listener is not None:
            self._area_listener(self._packet(area_id), area_id)

    def musiclist(self, area_id: int) -> list[str]:
        """Return the list an area shows: root entries first if enabled, then customs."""
        if self._global_enabled.get(area_id, False):
            return self._root_ordered + self._customs_ordered.get(area_id, [])
        return sorted(self._custom_lists.get(area_id, {}))

    def root_musiclist(self) -> list[str]:
        return list(self._root_ordered)

    def register_area(self, area_id: int) -> bool:
        """Start tracking an area; false if it is already registered."""
        if area_id in self._custom_lists:
            return False
        self._custom_lists[area_id] = {}
        self._global_enabled[area_id] = True
        return True

    def add_custom_song(self, song_name: str, real_name: str, duration: int, area_id: int) -> bool:
        """Add a song to an area's custom list; names without an extension get ``.opus``."""
        name = _with_default_extension(song_name)
        real = _with_default_extension(real_name)
        if not (validate_song(name, self._cdns) and validate_song(real, self._cdns)):
            return False
        if name in self._root_list and self._global_enabled.get(area_id, False):
            return False
        custom = self._custom_lists.setdefault(area_id, {})
        if song_name in custom:
            return False
        ordered = self._customs_ordered.setdefault(area_id, [])
        if name in ordered:
            return False
        custom[name] = Song(real, duration)
        ordered.append(name)
        self._announce(area_id)
        return True

    def add_custom_category(self, category_name: str, area_id: int) -> bool:
        """Add a category heading, wrapped in ``==`` if it is not already."""
        if "." in category_name:
            return False
        name = category_name if category_name.startswith("==") else f"=={category_name}=="
        if name in self._root_list and self._global_enabled.get(area_id, False):
            return False
        custom = self._custom_lists.setdefault(area_id, {})
        if name in custom:
            return False
        custom[name] = Song(name, 0)
        self._customs_ordered.setdefault(area_id, []).append(name)
        self._announce(area_id)
        return True

    def remove_category_song(self, name: str, area_id: int) -> bool:
        """Remove a custom song or category; root entries cannot be removed."""
        if name in self._root_list:
            return False
        custom = self._custom_lists.get(area_id, {})
        if name not in custom:
            return False
        del custom[name]
        self._customs_ordered[area_id] = [
            entry for entry in self._customs_ordered.get(area_id, []) if entry != name
        ]
        self._announce(area_id)
        return True

    def toggle_root_enabled(self, area_id: int) -> bool:
        """Flip whether an area shows the root list and return the new state."""
        enabled = not self._global_enabled.get(area_id, False)
        self._global_enabled[area_id] = enabled
        if enabled:
            self._sanitise_custom_list(area_id)
        self._announce(area_id)
        return enabled

    def _sanitise_custom_list(self, area_id: int) -> None:
        custom = self._custom_lists.get(area_id, {})
        self._custom_lists[area_id] = {
            name: song for name, song in custom.items() if name not in self._root_list
        }
        self._customs_ordered[area_id] = [
            name for name in self._customs_ordered.get(area_id, []) if name not in self._root_list
        ]

    def clear_custom_list(self, area_id: int) -> None:
        self._custom_lists[area_id] = {}
        self._customs_ordered[area_id] = []

    def song_information(self, song_name: str, area_id: int) -> Song | None:
        """Return what ``song_name`` refers to, looking in the root list first."""
        if song_name in self._root_list:
            return self._root_list[song_name]
        return self._custom_lists.get(area_id, {}).get(song_name)

    def is_custom(self, area_id: int, song_name: str) -> bool:
        lowered = song_name.lower()
        return any(entry.lower() == lowered for entry in self._customs_ordered.get(area_id, []))

    def reload(self, config) -> None:
        """Re-read the root list and approved CDNs from a configuration manager."""
        self._root_list = {name: Song(*entry) for name, entry in config.musiclist().items()}
        self._root_ordered = list(config.ordered_songs())
        self._cdns = list(config.cdn_list())

    def user_joined_area(self, area_id: int, user_id: int) -> None:
        """Send the area's music list to a user who just joined it."""
        if self._user_listener is not None:
            self._user_listener(self._packet(area_id), user_id)