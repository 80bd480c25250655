# akashi

Building blocks for an Attorney Online 2 server, in plain Python with no
third-party dependencies: the packet format, permission roles, configuration
files, the ban and account database, per-area music lists, Discord webhooks
and logging.

## Modules

| Module | What it does |
| --- | --- |
| `akashi.aopacket` | `AOPacket` (header plus content fields) and the `HEADER#field#field#%` wire format. `escape` / `unescape` convert `#`, `%`, `$`, `&` to and from `<num>`, `<percent>`, `<dollar>`, `<and>`. Evidence packets (`LE`) keep `&` unescaped. |
| `akashi.network` | `PacketStream.feed(bytes)` reassembles packets from a TCP byte stream, keeping incomplete data for the next call; `split_ws_message(str)` splits one WebSocket text message. Input over 30720 bytes raises `PayloadTooLarge`. If the first packet of a chunk is an `MC` packet, only that packet is returned. |
| `akashi.acl_roles` | `Permission` flags, `ACLRole` and `ACLRolesHandler`. Role identifiers are case-insensitive; the built-in `NONE` and `SUPER` roles cannot be replaced or removed. Roles are loaded from and saved to INI files. |
| `akashi.config` | `ConfigManager(root=".")` reads `config/config.ini`, `config/areas.ini`, `config/discord.ini`, `config/text/logtext.ini`, the text lists, `music.json` and `commandhelp.json`. `verify_server_config()` raises `ConfigError` on the first problem. `AuthType`, `LogType` and `CommandHelp` describe settings. |
| `akashi.database` | `Database(path="config/akashi.db")` stores bans (`BanInfo`) and moderator accounts in SQLite. Passwords are hashed with PBKDF2-SHA256 by `hash_password`; `random_salt` makes salts. A ban duration of `-2` never expires. |
| `akashi.music` | `MusicManager` combines the root music list with a custom list per area and calls optional listeners with an `FM` packet when a list changes. `validate_song` accepts local `.opus`, `.ogg`, `.mp3`, `.wav` names and http(s) URLs on approved CDNs. |
| `akashi.discord` | `DiscordWebhook(config, poster=None)` builds modcall, ban and uptime payloads and posts them (via `urllib` unless a `poster` is given). `format_uptime` renders milliseconds as days, hours and minutes. |
| `akashi.log_writers` | `FullLogWriter` appends entries to daily files (optionally one per area); `ModcallLogWriter` writes a report file of an area's buffer. |
| `akashi.logger` | `ULogger(config, log_dir="logs")` formats IC, OOC, login, command, kick, ban, modcall and connection events, keeps a bounded buffer per area and writes according to the configured `LogType`. Arguments of `login` and `rootpass` commands are never logged. |

## Examples

Packets:

```python
from akashi.aopacket import AOPacket, escape, unescape

packet = AOPacket.parse("CT#Phoenix#Hold it!")
print(packet.to_string())        # CT#Phoenix#Hold it!#%

assert unescape(escape("50% #1 & $5")) == "50% #1 & $5"
```

Splitting a TCP stream:

```python
from akashi.network import PacketStream

stream = PacketStream()
stream.feed(b"HI#hardware#%CT#na")        # one packet, the rest is kept
stream.feed(b"me#hello#%")                # the completed CT packet
```

Permissions:

```python
from akashi.acl_roles import ACLRole, ACLRolesHandler, Permission

role = ACLRole()
role.set_permission(Permission.KICK, True)
assert role.check_permission(Permission.KICK)

roles = ACLRolesHandler()
roles.insert_role("moderator", role)
roles.save_file("acl_roles.ini")
```

Accounts and bans:

```python
from akashi.database import BanInfo, Database, random_salt

password = "password"
with Database(":memory:") as db:
    db.create_user("admin", random_salt(), password, "SUPER")
    assert db.authenticate("admin", password)
    db.add_ban(BanInfo(ipid="abc123", reason="spam", duration=-2, time=0))
    banned, ban = db.is_ipid_banned("abc123")   # (True, BanInfo(...))
```

Music names:

```python
from akashi.music import validate_song

validate_song("https://cdn.discord.com/track.opus", ["cdn.discord.com"])  # True
validate_song("track.txt", [])                                             # False
```

## What the package does not do

There is no network server here: nothing listens on a port, accepts TCP or
WebSocket connections, tracks connected clients or areas, or handles chat
commands. There is no command-line program either. The modules provide the
pieces such a server is built from, and leave the connection handling to the
code that uses them.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.