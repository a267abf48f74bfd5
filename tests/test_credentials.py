# tests/test_credentials.py
import pytest

from studenten_register.credentials import CredentialService
from studenten_register.domain import Role
from studenten_register.errors import InvalidCredentials, NotFound


def test_defaults_written_once(cred_repo):
    assert cred_repo.ensure_defaults()
    lines = cred_repo.path.read_text(encoding="utf-8").splitlines()
    assert lines == [
        "admin admin ADMIN",
        "staff staff STAFF",
        "guest guest GUEST",
        "principal principal PRINCIPAL",
        "student student STUDENT",
    ]
    assert not cred_repo.ensure_defaults()


def test_check_returns_role(cred_repo):
    cred_repo.ensure_defaults()
    assert cred_repo.check("principal", "principal") is Role.PRINCIPAL
    with pytest.raises(InvalidCredentials):
        cred_repo.check("admin", "wrong")


def test_check_on_missing_file_fails(cred_repo):
    with pytest.raises(InvalidCredentials):
        cred_repo.check("admin", "admin")


def test_duplicate_usernames_first_match_wins(cred_repo):
    cred_repo.add("bob", "one", "staff")
    cred_repo.add("bob", "one", "admin")
    assert cred_repo.check("bob", "one") is Role.STAFF


def test_reset_updates_all_matching_lines(cred_repo):
    cred_repo.add("bob", "one", "staff")
    cred_repo.add("eve", "pw", "guest")
    cred_repo.add("bob", "two", "admin")

    assert cred_repo.reset_password("bob", "new") == 2
    assert cred_repo.path.read_text(encoding="utf-8").splitlines() == [
        "bob new STAFF",
        "eve pw GUEST",
        "bob new ADMIN",
    ]
    assert cred_repo.check("bob", "new") is Role.STAFF


def test_reset_absent_user_leaves_file_unchanged(cred_repo):
    cred_repo.ensure_defaults()
    before = cred_repo.path.read_bytes()
    with pytest.raises(NotFound):
        cred_repo.reset_password("nobody", "x")
    assert cred_repo.path.read_bytes() == before


def test_remove_drops_all_matching_lines(cred_repo):
    cred_repo.add("bob", "one", "staff")
    cred_repo.add("eve", "pw", "guest")
    cred_repo.add("bob", "two", "admin")

    assert cred_repo.remove("bob") == 2
    assert [e.username for e in cred_repo.load_all()] == ["eve"]
    with pytest.raises(NotFound):
        cred_repo.remove("bob")


def test_rewrites_keep_untouched_lines_as_read(cred_repo):
    original = (
        "dora pw staff\n"
        "carl pw janitor\n"
        "broken\n"
        "bob old GUEST\n"
    )
    cred_repo.path.write_text(original, encoding="utf-8")

    assert cred_repo.reset_password("bob", "new") == 1
    assert cred_repo.path.read_text(encoding="utf-8") == original.replace("bob old", "bob new")

    assert cred_repo.remove("bob") == 1
    assert cred_repo.path.read_text(encoding="utf-8") == (
        "dora pw staff\n"
        "carl pw janitor\n"
        "broken\n"
    )


def test_reset_rejects_password_with_whitespace(cred_repo):
    cred_repo.add("bob", "one", "staff")
    before = cred_repo.path.read_bytes()
    with pytest.raises(ValueError):
        cred_repo.reset_password("bob", "a b")
    assert cred_repo.path.read_bytes() == before


def test_load_all_is_tolerant(cred_repo):
    cred_repo.path.write_text(
        "admin admin ADMIN\n"
        "broken line\n"
        "carl pw janitor\n"
        "dora pw staff\n",
        encoding="utf-8",
    )
    entries = cred_repo.load_all()
    assert [(e.username, e.role) for e in entries] == [
        ("admin", Role.ADMIN),
        ("carl", Role.GUEST),
        ("dora", Role.STAFF),
    ]


def test_add_rejects_invalid_tokens(cred_repo):
    with pytest.raises(ValueError):
        cred_repo.add("bo b", "pw", "staff")
    with pytest.raises(ValueError):
        cred_repo.add("bob", "pw", "janitor")
    assert cred_repo.load_all() == []


def test_service_login_and_management(cred_repo, admin, staff):
    cred_repo.ensure_defaults()
    service = CredentialService(cred_repo)

    login = service.login("staff", "staff")
    assert login.ok
    assert login.value.role is Role.STAFF
    assert not service.login("staff", "nope").ok

    assert not service.add_user(staff, "carl", "pw", "guest").ok
    assert service.add_user(admin, "carl", "pw", "guest").ok
    assert service.reset_password(admin, "carl", "pw2").ok
    assert cred_repo.check("carl", "pw2") is Role.GUEST
    assert service.remove_user(admin, "carl").ok

    missing = service.remove_user(admin, "carl")
    assert not missing.ok
    assert "carl" in missing.message
