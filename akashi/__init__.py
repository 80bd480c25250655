"""Building blocks for an Attorney Online 2 server: packets, roles, configuration, storage, music, webhooks and logging."""

__version__ = "0.1.0"

__all__ = [
    "acl_roles",
    "aopacket",
    "config",
    "database",
    "discord",
    "log_writers",
    "logger",
    "music",
    "network",
]