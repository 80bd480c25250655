import pytest

from akashi.acl_roles import (
    GRANULAR_PERMISSIONS,
    ACLRole,
    ACLRolesHandler,
    Permission,
)


def test_empty_role_only_has_none():
    role = ACLRole()
    assert role.check_permission(Permission.NONE) is True
    assert role.check_permission(Permission.KICK) is False


def test_set_and_unset_permission():
    role = ACLRole()
    role.set_permission(Permission.BAN, True)
    role.set_permission(Permission.MUTE, True)
    assert role.check_permission(Permission.BAN)
    assert role.check_permission(Permission.MUTE)
    assert not role.check_permission(Permission.NONE)
    role.set_permission(Permission.BAN, False)
    assert not role.check_permission(Permission.BAN)
    assert role.check_permission(Permission.MUTE)


def test_combined_check_requires_all_bits():
    role = ACLRole(Permission.KICK)
    assert not role.check_permission(Permission.KICK | Permission.BAN)


def test_super_role_has_every_permission():
    role = ACLRole(Permission.SUPER)
    assert all(role.check_permission(p) for p in GRANULAR_PERMISSIONS)


def test_unset_from_super_keeps_others():
    role = ACLRole(Permission.SUPER)
    role.set_permission(Permission.KICK, False)
    assert not role.check_permission(Permission.KICK)
    assert role.check_permission(Permission.JUKEBOX)


def test_readonly_roles_exist_and_cannot_change():
    handler = ACLRolesHandler()
    assert handler.role_exists("super")
    assert handler.role_exists(ACLRolesHandler.NONE_ID)
    assert handler.insert_role("SUPER", ACLRole()) is False
    assert handler.remove_role("none") is False
    assert handler.get_role("Super").check_permission(Permission.CM)


def test_insert_is_case_insensitive_and_copies():
    handler = ACLRolesHandler()
    role = ACLRole(Permission.KICK)
    assert handler.insert_role("Moderator", role) is True
    role.set_permission(Permission.BAN, True)
    fetched = handler.get_role("MODERATOR")
    assert fetched == ACLRole(Permission.KICK)
    fetched.set_permission(Permission.CM, True)
    assert handler.get_role("moderator") == ACLRole(Permission.KICK)


def test_unknown_role_is_empty():
    handler = ACLRolesHandler()
    assert handler.role_exists("ghost") is False
    assert handler.get_role("ghost") == ACLRole()


def test_remove_and_clear():
    handler = ACLRolesHandler()
    handler.insert_role("a", ACLRole(Permission.KICK))
    handler.insert_role("b", ACLRole(Permission.BAN))
    assert handler.remove_role("A") is True
    assert handler.remove_role("a") is False
    handler.clear_roles()
    assert handler.role_exists("b") is False
    assert handler.role_exists("SUPER") is True


def test_save_and_load_round_trip(tmp_path):
    path = tmp_path / "acl.ini"
    handler = ACLRolesHandler()
    handler.insert_role("mod", ACLRole(Permission.KICK | Permission.BAN))
    handler.insert_role("cm", ACLRole(Permission.CM))
    handler.save_file(path)

    other = ACLRolesHandler()
    other.insert_role("stale", ACLRole(Permission.MOTD))
    other.load_file(path)
    assert other.get_role("MOD") == ACLRole(Permission.KICK | Permission.BAN)
    assert other.get_role("cm") == ACLRole(Permission.CM)
    assert other.role_exists("stale") is False


def test_load_skips_readonly_sections(tmp_path):
    path = tmp_path / "acl.ini"
    path.write_text("[NONE]\nkick = true\n[helper]\nkick = true\n", encoding="utf-8")
    handler = ACLRolesHandler()
    handler.load_file(path)
    assert handler.get_role("none") == ACLRole()
    assert handler.get_role("helper") == ACLRole(Permission.KICK)


def test_load_missing_file_raises(tmp_path):
    handler = ACLRolesHandler()
    with pytest.raises(FileNotFoundError):
        handler.load_file(tmp_path / "missing.ini")