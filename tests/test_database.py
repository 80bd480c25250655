import sqlite3

import pytest

from akashi.database import (
    DB_VERSION,
    PERMANENT_DURATION,
    SALT_LENGTH,
    BanInfo,
    Database,
    hash_password,
    random_salt,
)

NOW = 1_000_000


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "akashi.db"


@pytest.fixture
def db(db_path):
    with Database(db_path, clock=lambda: NOW) as database:
        yield database


def test_hash_password_deterministic_and_salted():
    salt = b"\x01" * SALT_LENGTH
    password = "password"
    assert hash_password(salt, password) == hash_password(salt, password)
    assert hash_password(salt, password) != hash_password(b"\x02" * SALT_LENGTH, password)
    assert len(hash_password(salt, password)) == 64


def test_random_salt_length():
    assert len(random_salt(16)) == 16
    assert len(random_salt(4)) == 4


def test_fresh_database_version(db, db_path):
    assert db.users() == []
    assert db.recent_bans() == []
    db.close()
    conn = sqlite3.connect(db_path)
    assert conn.execute("PRAGMA user_version").fetchone()[0] == DB_VERSION
    conn.close()


def test_migration_promotes_root(db_path):
    Database(db_path).close()
    conn = sqlite3.connect(db_path)
    conn.execute("INSERT INTO users(USERNAME, SALT, PASSWORD, ACL) VALUES('root', '', '', 'NONE')")
    conn.execute("PRAGMA user_version = 2")
    conn.commit()
    conn.close()
    with Database(db_path) as database:
        assert database.get_acl("root") == "SUPER"


def test_active_and_expired_bans(db):
    db.add_ban(BanInfo(ipid="active", hdid="h1", time=NOW - 10, duration=100, reason="r", moderator="m"))
    db.add_ban(BanInfo(ipid="expired", hdid="h2", time=NOW - 100, duration=10))
    banned, ban = db.is_ipid_banned("active")
    assert banned is True
    assert ban.reason == "r"
    assert ban.moderator == "m"
    banned, ban = db.is_ipid_banned("expired")
    assert banned is False
    assert ban.ipid == "expired"
    assert db.is_hdid_banned("h1")[0] is True


def test_permanent_ban(db):
    db.add_ban(BanInfo(ipid="perma", hdid="hp", time=0, duration=PERMANENT_DURATION))
    assert db.is_ipid_banned("perma")[0] is True
    assert db.is_hdid_banned("hp")[0] is True


def test_no_ban(db):
    assert db.is_ipid_banned("nobody") == (False, None)
    assert db.ban_id_for_hdid("nobody") is None
    assert db.ban_id_for_ip("10.0.0.1") is None


def test_ban_ids(db):
    first = db.add_ban(BanInfo(hdid="h", ip="10.0.0.1", time=1))
    second = db.add_ban(BanInfo(hdid="h", ip="10.0.0.1", time=2))
    assert first != second
    assert db.ban_id_for_hdid("h") == second
    assert db.ban_id_for_ip("10.0.0.1") == second


def test_recent_bans_limit_and_order(db):
    for stamp in range(7):
        db.add_ban(BanInfo(ipid=f"ip{stamp}", time=stamp))
    recent = db.recent_bans()
    assert len(recent) == 5
    assert [ban.time for ban in recent] == sorted(ban.time for ban in recent)
    assert recent[-1].ipid == "ip6"


def test_invalidate_ban(db):
    ban_id = db.add_ban(BanInfo(ipid="x", time=NOW, duration=PERMANENT_DURATION))
    assert db.invalidate_ban(ban_id) is True
    assert db.is_ipid_banned("x")[0] is False
    assert db.invalidate_ban(ban_id + 100) is False


def test_ban_info_lookups(db):
    ban_id = db.add_ban(BanInfo(ipid="ip", hdid="hd", time=5, reason="spam"))
    assert db.ban_info("banid", str(ban_id))[0].reason == "spam"
    assert db.ban_info("hdid", "hd")[0].id == ban_id
    assert db.ban_info("ipid", "ip")[0].hdid == "hd"
    assert db.ban_info("ipid", "missing") == []
    with pytest.raises(ValueError):
        db.ban_info("nonsense", "ip")


def test_update_ban(db):
    ban_id = db.add_ban(BanInfo(ipid="ip", time=5, reason="old", duration=10))
    db.update_ban(ban_id, "reason", "new")
    db.update_ban(ban_id, "duration", "20")
    ban = db.ban_info("banid", str(ban_id))[0]
    assert ban.reason == "new"
    assert ban.duration == 20
    with pytest.raises(ValueError):
        db.update_ban(ban_id, "moderator", "x")


def test_user_lifecycle(db):
    password = "password"
    assert db.create_user("alice", random_salt(), password, "NONE") is True
    assert db.create_user("alice", random_salt(), password, "NONE") is False
    assert db.authenticate("alice", password) is True
    assert db.authenticate("alice", "secret") is False
    assert db.authenticate("bob", password) is False
    assert db.get_acl("alice") == "NONE"
    assert db.update_acl("alice", "SUPER") is True
    assert db.get_acl("alice") == "SUPER"
    assert db.update_acl("bob", "SUPER") is False
    assert db.get_acl("") is None


def test_users_order_and_delete(db):
    for name in ("root", "zed", "amy"):
        db.create_user(name, random_salt(), "password", "NONE")
    assert db.users() == ["root", "zed", "amy"]
    assert db.delete_user("root") is False
    assert db.delete_user("zed") is True
    assert db.delete_user("zed") is False
    assert db.users() == ["root", "amy"]


def test_update_password(db):
    db.create_user("alice", random_salt(), "password", "NONE")
    db.update_password("alice", "secret")
    assert db.authenticate("alice", "secret") is True
    assert db.authenticate("alice", "password") is False


def test_short_salt_is_upgraded(db, db_path):
    db.create_user("alice", b"\x07" * 4, "password", "NONE")
    assert db.authenticate("alice", "password") is True
    conn = sqlite3.connect(db_path)
    salt_hex = conn.execute("SELECT SALT FROM users WHERE USERNAME = 'alice'").fetchone()[0]
    conn.close()
    assert len(bytes.fromhex(salt_hex)) == SALT_LENGTH
    assert db.authenticate("alice", "password") is True