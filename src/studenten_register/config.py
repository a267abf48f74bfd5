"""
Konfiguration der Dateipfade.

Alle Dateien liegen in einem Datenverzeichnis.
Das Verzeichnis kann über SRMS_DATA_DIR gesetzt werden, sonst gilt das
aktuelle Arbeitsverzeichnis.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union


class Config:
    DATA_DIR = os.getenv("SRMS_DATA_DIR", ".")

    STUDENT_FILE = "students.txt"
    CREDENTIAL_FILE = "credentials.txt"
    BACKUP_FILE = "students_backup.txt"
    CSV_FILE = "students.csv"
    REPORT_FILE = "report.txt"


@dataclass(frozen=True, slots=True)
class EnginePaths:
    """Aufgelöste Pfade aller Dateien der Engine."""
    student_file: Path
    credential_file: Path
    backup_file: Path
    csv_file: Path
    report_file: Path

    @classmethod
    def in_directory(cls, data_dir: Union[str, Path]) -> EnginePaths:
        base = Path(data_dir)
        return cls(
            student_file=base / Config.STUDENT_FILE,
            credential_file=base / Config.CREDENTIAL_FILE,
            backup_file=base / Config.BACKUP_FILE,
            csv_file=base / Config.CSV_FILE,
            report_file=base / Config.REPORT_FILE,
        )

    @classmethod
    def from_env(cls, data_dir: Optional[Union[str, Path]] = None) -> EnginePaths:
        """
        Pfade aus Argument oder Umgebung.
        SRMS_DATA_DIR wird bei jedem Aufruf neu gelesen.
        """
        return cls.in_directory(data_dir or os.getenv("SRMS_DATA_DIR", Config.DATA_DIR))
