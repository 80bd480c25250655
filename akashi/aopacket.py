"""Packets of the AO2 text protocol and their escaping rules."""

from __future__ import annotations

from dataclasses import dataclass, field

PACKET_TERMINATOR = "%"
EVIDENCE_HEADER = "LE"

_ESCAPES = (
    ("#", "<num>"),
    ("%", "<percent>"),
    ("$", "<dollar>"),
    ("&", "<and>"),
)
_EVIDENCE_ESCAPES = _ESCAPES[:3]


def _escape_with(text: str, table) -> str:
    for raw, escaped in table:
        text = text.replace(raw, escaped)
    return text


def escape(text: str) -> str:
    """Replace protocol delimiters in ``text`` with their escape sequences."""
    return _escape_with(text, _ESCAPES)


def unescape(text: str) -> str:
    """Turn escape sequences in ``text`` back into the characters they stand for."""
    for raw, escaped in _ESCAPES:
        text = text.replace(escaped, raw)
    return text


@dataclass
class AOPacket:
    """A packet: a header followed by content fields."""

    header: str
    content: list[str] = field(default_factory=list)
    escaped: bool = False

    @classmethod
    def parse(cls, raw: str) -> "AOPacket":
        """Build a packet from its wire text, with or without the terminator.

        Wire content is already escaped, so the packet is marked as such.
        """
        if raw.endswith(PACKET_TERMINATOR):
            raw = raw[: -len(PACKET_TERMINATOR)]
        header, *content = raw.split("#")
        if content and content[-1] == "":
            content.pop()
        if not header:
            raise ValueError(f"packet has no header: {raw!r}")
        return cls(header, content, escaped=True)

    def set_field(self, index: int, value: str) -> None:
        self.content[index] = value

    def escape_content(self) -> None:
        self.content = [escape(part) for part in self.content]
        self.escaped = True

    def unescape_content(self) -> None:
        self.content = [unescape(part) for part in self.content]
        self.escaped = False

    def escape_evidence(self) -> None:
        """Escape like :meth:`escape_content` but leave ``&`` alone."""
        self.content = [_escape_with(part, _EVIDENCE_ESCAPES) for part in self.content]
        self.escaped = True

    def to_string(self) -> str:
        """Escape the content as needed and return the wire text."""
        if not self.escaped and self.header != EVIDENCE_HEADER:
            self.escape_content()
        else:
            self.escape_evidence()
        return f"{self.header}#{'#'.join(self.content)}#{PACKET_TERMINATOR}"

    def to_bytes(self) -> bytes:
        return self.to_string().encode("utf-8")