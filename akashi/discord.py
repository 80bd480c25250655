"""Discord webhook notifications for modcalls, bans and uptime."""

from __future__ import annotations

import json
import logging
import secrets
import urllib.error
import urllib.request
from collections.abc import Callable, Iterable
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

Poster = Callable[[str, bytes, str], None]

_TIMEOUT = 10


def format_uptime(milliseconds: int) -> str:
    """Describe an uptime in days, hours and minutes."""
    seconds = milliseconds // 1000
    minutes = (seconds // 60) % 60
    hours = (seconds // (60 * 60)) % 24
    days = (seconds // (60 * 60 * 24)) % 365
    return f"{days} days, {hours} hours and {minutes} minutes."


def _urllib_post(url: str, body: bytes, content_type: str) -> None:
    request = urllib.request.Request(
        url, data=body, headers={"Content-Type": content_type}, method="POST"
    )
    try:
        with urllib.request.urlopen(request, timeout=_TIMEOUT) as response:
            response.read()
    except (urllib.error.URLError, OSError) as error:
        logger.warning("Webhook request failed: %s", error)


def _is_valid_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


class DiscordWebhook:
    """Builds webhook payloads from the configuration and posts them.

    ``poster(url, body, content_type)`` performs the HTTP request; by default
    it is a plain POST through :mod:`urllib`.
    """

    def __init__(self, config, poster: Poster | None = None) -> None:
        self._config = config
        self._poster = poster or _urllib_post

    def _embed(self, title: str, description: str) -> dict:
        return {
            "color": self._config.discord_webhook_color(),
            "title": title,
            "description": description,
        }

    def modcall_payload(self, name: str, area: str, reason: str) -> dict:
        payload: dict = {}
        content = self._config.discord_modcall_webhook_content()
        if content:
            payload["content"] = content
        payload["embeds"] = [self._embed(f"{name} filed a modcall in {area}", reason)]
        return payload

    def ban_payload(self, ipid: str, moderator: str, duration: str, reason: str, ban_id: int) -> dict:
        description = (
            f"Client IPID : {ipid}\nBan ID: {ban_id}\nBan reason : {reason}\nBanned until : {duration}"
        )
        return {"embeds": [self._embed(f"Ban issued by {moderator}", description)]}

    def uptime_payload(self, time_expired: str) -> dict:
        return {
            "embeds": [
                self._embed("Your server is online!", f"Your server has been online for {time_expired}")
            ]
        }

    def log_multipart(self, buffer: Iterable[str]) -> tuple[bytes, str]:
        """Return a multipart body holding the log buffer as ``log.txt``, and its content type."""
        boundary = secrets.token_hex(16)
        log = "".join(f"{entry}\n" for entry in buffer)
        head = (
            f"--{boundary}\r\n"
            'Content-Disposition: form-data; name="file"; filename="log.txt"\r\n'
            "Content-Type: plain/text\r\n"
            "\r\n"
        )
        body = head.encode("utf-8") + log.encode("utf-8") + f"\r\n--{boundary}--\r\n".encode("utf-8")
        return body, f"multipart/form-data; boundary={boundary}"

    def _post(self, url: str, body: bytes, content_type: str) -> bool:
        if not _is_valid_url(url):
            logger.warning("Invalid webhook URL!")
            return False
        self._poster(url, body, content_type)
        return True

    def _post_json(self, url: str, payload: dict) -> bool:
        return self._post(url, json.dumps(payload).encode("utf-8"), "application/json")

    def post_modcall(self, name: str, area: str, reason: str, buffer: Iterable[str]) -> bool:
        """Post a modcall notice, followed by the area log if configured; false on a bad URL."""
        url = self._config.discord_modcall_webhook_url()
        posted = self._post_json(url, self.modcall_payload(name, area, reason))
        if self._config.discord_modcall_webhook_sendfile():
            body, content_type = self.log_multipart(buffer)
            posted = self._post(url, body, content_type) and posted
        return posted

    def post_ban(self, ipid: str, moderator: str, duration: str, reason: str, ban_id: int) -> bool:
        url = self._config.discord_ban_webhook_url()
        return self._post_json(url, self.ban_payload(ipid, moderator, duration, reason, ban_id))

    def post_uptime(self) -> bool:
        url = self._config.discord_uptime_webhook_url()
        return self._post_json(url, self.uptime_payload(format_uptime(self._config.uptime())))