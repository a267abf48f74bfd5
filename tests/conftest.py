# tests/conftest.py
from __future__ import annotations

import logging

import pytest

from studenten_register.app_logger import LOGGER_NAME
from studenten_register.config import EnginePaths
from studenten_register.credentials import FileCredentialRepository
from studenten_register.domain import Role, Session, StudentRecord
from studenten_register.persistence import FileRecordRepository
from studenten_register.service import RecordService


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """
    Handler aus setup_logging() nach jedem Test entfernen.
    Sonst schreiben sie in bereits geschlossene capsys-Streams.
    """
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def paths(tmp_path) -> EnginePaths:
    return EnginePaths.in_directory(tmp_path)


@pytest.fixture
def repo(paths) -> FileRecordRepository:
    return FileRecordRepository(paths.student_file)


@pytest.fixture
def cred_repo(paths) -> FileCredentialRepository:
    return FileCredentialRepository(paths.credential_file)


@pytest.fixture
def service(repo) -> RecordService:
    return RecordService(repo)


@pytest.fixture
def admin() -> Session:
    return Session("admin", Role.ADMIN)


@pytest.fixture
def staff() -> Session:
    return Session("staff", Role.STAFF)


@pytest.fixture
def guest() -> Session:
    return Session("guest", Role.GUEST)


def _make_record(record_id: int, name: str = "Student", mark: float = 50.0) -> StudentRecord:
    """Datensatz mit drei gleichen Noten, Prozent == mark."""
    return StudentRecord(id=record_id, name=name, marks=[mark, mark, mark])


@pytest.fixture
def make_record():
    return _make_record


@pytest.fixture
def populated(repo):
    """Drei Datensätze mit 40, 90 und 50 Prozent."""
    records = [
        _make_record(1, "Anna Berg", 40.0),
        _make_record(2, "Ben Kraus", 90.0),
        _make_record(3, "Clara Weiss", 50.0),
    ]
    repo.overwrite_all(records)
    return records
