# tests/test_maintenance.py
import csv
from datetime import datetime

import pytest

from studenten_register.maintenance import MaintenanceService, key_byte


@pytest.fixture
def maintenance(paths, repo):
    return MaintenanceService(paths, repo=repo)


def test_backup_without_data_fails(maintenance, paths, admin):
    result = maintenance.backup(admin)
    assert not result.ok
    assert not paths.backup_file.exists()


def test_backup_and_restore(maintenance, paths, admin, populated, repo, make_record):
    original = paths.student_file.read_bytes()
    assert maintenance.backup(admin).ok
    assert paths.backup_file.read_bytes() == original

    repo.overwrite_all([make_record(99)])

    refused = maintenance.restore(admin)
    assert not refused.ok
    assert [r.id for r in repo.load_all()] == [99]

    assert maintenance.restore(admin, confirmed=True).ok
    assert paths.student_file.read_bytes() == original


def test_restore_without_backup_fails(maintenance, admin, populated):
    result = maintenance.restore(admin, confirmed=True)
    assert not result.ok
    assert "Backup" in result.message


def test_export_writes_csv_and_report(maintenance, paths, admin, populated):
    before = paths.student_file.read_bytes()
    stamp = datetime(2024, 3, 1, 12, 30, 0)

    result = maintenance.export(admin, erstellt_am=stamp)
    assert result.ok

    raw = paths.csv_file.read_text(encoding="utf-8").splitlines()
    assert raw[0] == "Roll,Name,Math,Science,English,Total,Percentage,Grade"
    assert raw[2] == '2,"Ben Kraus",90.00,90.00,90.00,270.00,90.00,"A+"'

    with open(paths.csv_file, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert len(rows) == 4
    assert rows[1][:2] == ["1", "Anna Berg"]

    report = paths.report_file.read_text(encoding="utf-8")
    assert report.startswith("Student Report Generated on Fri Mar  1 12:30:00 2024")
    assert report.count("-----------------") == 3
    assert "Name: Clara Weiss\nMath: 50.00\n" in report
    assert "Grade: F" in report

    assert paths.student_file.read_bytes() == before


def test_export_empty_store_fails(maintenance, paths, admin):
    result = maintenance.export(admin)
    assert not result.ok
    assert not paths.csv_file.exists()
    assert not paths.report_file.exists()


def test_csv_quotes_only_the_name(maintenance, paths, admin, repo, make_record):
    repo.overwrite_all([make_record(5, 'Kim "K", Lee', 75.0)])
    assert maintenance.export(admin).ok

    raw = paths.csv_file.read_text(encoding="utf-8").splitlines()
    assert raw[1] == '5,"Kim ""K"", Lee",75.00,75.00,75.00,225.00,75.00,B'
    with open(paths.csv_file, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[1][1] == 'Kim "K", Lee'
    assert rows[1][-1] == "B"


@pytest.mark.parametrize("key", ["k", "\x00", "ÿ", "|"])
def test_obfuscation_is_involutive(maintenance, paths, admin, populated, key):
    original = paths.student_file.read_bytes()

    assert maintenance.obfuscate(admin, key).ok
    if key != "\x00":
        assert paths.student_file.read_bytes() != original

    assert maintenance.obfuscate(admin, key).ok
    assert paths.student_file.read_bytes() == original


def test_obfuscated_file_loads_as_empty(maintenance, admin, populated, repo):
    maintenance.obfuscate(admin, "k")
    assert repo.load_all() == []


def test_obfuscation_requires_admin(maintenance, staff, populated):
    assert not maintenance.obfuscate(staff, "k").ok


def test_obfuscation_missing_file(maintenance, admin):
    assert not maintenance.obfuscate(admin, "k").ok


@pytest.mark.parametrize("key", ["", "ab", "€"])
def test_key_must_be_single_byte_character(key):
    with pytest.raises(ValueError):
        key_byte(key)


def test_guest_may_back_up_but_student_may_not(maintenance, guest, populated):
    from studenten_register.domain import Role, Session

    assert maintenance.backup(guest).ok
    assert not maintenance.backup(Session("1", Role.STUDENT)).ok
