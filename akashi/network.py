"""Splitting raw client traffic into packets."""

from __future__ import annotations

from akashi.aopacket import PACKET_TERMINATOR, AOPacket

MAX_PAYLOAD = 30720


class PayloadTooLarge(Exception):
    """A client sent more data at once than the server accepts."""

    def __init__(self, size: int) -> None:
        super().__init__(f"payload of {size} bytes exceeds {MAX_PAYLOAD}")
        self.size = size


def _build_packets(pieces: list[str]) -> list[AOPacket]:
    pieces = [piece for piece in pieces if piece]
    if pieces and pieces[0].upper().startswith("MC"):
        pieces = pieces[:1]
    packets = []
    for piece in pieces:
        try:
            packets.append(AOPacket.parse(piece))
        except ValueError:
            continue
    return packets


class PacketStream:
    """Reassembles packets from a byte stream such as a TCP connection."""

    def __init__(self) -> None:
        self._partial = b""

    def feed(self, data: bytes) -> list[AOPacket]:
        """Consume a chunk of bytes and return the packets it completes."""
        if len(data) > MAX_PAYLOAD:
            self._partial = b""
            raise PayloadTooLarge(len(data))
        *complete, self._partial = (self._partial + data).split(
            PACKET_TERMINATOR.encode("ascii")
        )
        return _build_packets([chunk.decode("utf-8", errors="replace") for chunk in complete])


def split_ws_message(data: str) -> list[AOPacket]:
    """Return the packets in one websocket text message."""
    size = len(data.encode("utf-8"))
    if size > MAX_PAYLOAD:
        raise PayloadTooLarge(size)
    return _build_packets(data.split(PACKET_TERMINATOR)[:-1])