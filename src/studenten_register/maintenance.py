"""
Wartung der Datensatzdatei

- Backup / Restore: Byte-Kopie zwischen Datensatzdatei und Backup
- Export: CSV-Tabelle und lesbarer Bericht aus einem Snapshot
- Verschleierung: XOR mit einem Zeichen, zweimal angewendet = Original

Die Engine merkt sich nicht, ob die Datei gerade verschleiert ist.
Das muss der Aufrufer wissen.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from .app_logger import get_logger
from .config import EnginePaths
from .domain import SUBJECTS, Permission, Session, StudentRecord
from .errors import EngineError, OperationResult
from .persistence import FileRecordRepository, FileStorage

log = get_logger("maintenance")

CSV_HEADER = ["Roll", "Name", *SUBJECTS, "Total", "Percentage", "Grade"]
REPORT_SEPARATOR = "-----------------"


def _quote(text: str) -> str:
    """Text in Anführungszeichen, innere Anführungszeichen verdoppelt."""
    return '"' + text.replace('"', '""') + '"'


def csv_rows(snapshot: Sequence[StudentRecord]) -> List[str]:
    """
    Eine CSV-Zeile je Datensatz.
    Nur der Name steht in Anführungszeichen, Zahlen mit zwei Nachkommastellen.
    """
    rows = []
    for r in snapshot:
        zahlen = [*r.marks, r.total, r.percentage]
        rows.append(",".join([str(r.id), _quote(r.name), *(f"{z:.2f}" for z in zahlen), r.grade.value]))
    return rows


def render_report(snapshot: Sequence[StudentRecord], erstellt_am: datetime) -> str:
    """
    Baut den Bericht als Text.
    Kopfzeile mit Zeitstempel, danach ein Block je Datensatz.
    """
    lines = [f"Student Report Generated on {erstellt_am.ctime()}", ""]
    for r in snapshot:
        lines.append(f"Roll: {r.id}")
        lines.append(f"Name: {r.name}")
        for subject, mark in zip(SUBJECTS, r.marks):
            lines.append(f"{subject}: {mark:.2f}")
        lines.append(f"Total: {r.total:.2f}")
        lines.append(f"Percentage: {r.percentage:.2f}")
        lines.append(f"Grade: {r.grade.value}")
        lines.append(REPORT_SEPARATOR)
    return "\n".join(lines) + "\n"


def key_byte(key: str) -> int:
    """Ein einzelnes Zeichen mit Codepunkt < 256."""
    if not isinstance(key, str) or len(key) != 1:
        raise ValueError("Schlüssel muss genau ein Zeichen sein.")
    code = ord(key)
    if code > 0xFF:
        raise ValueError("Schlüssel muss ein Zeichen mit Codepunkt < 256 sein.")
    return code


class MaintenanceService:
    """
    Backup, Restore, Export und Verschleierung.
    Alle Operationen liefern ein OperationResult.
    """

    def __init__(
        self,
        paths: EnginePaths,
        repo: Optional[FileRecordRepository] = None,
        storage: Optional[FileStorage] = None,
    ) -> None:
        self._paths = paths
        self._storage = storage or FileStorage()
        self._repo = repo or FileRecordRepository(paths.student_file, storage=self._storage)

    def backup(self, session: Session) -> OperationResult:
        """Kopiert die Datensatzdatei auf den Backup-Pfad."""
        try:
            session.require(Permission.BACKUP)
            if not self._paths.student_file.exists():
                return OperationResult.failure("Keine Daten für ein Backup vorhanden.")
            size = self._storage.copy_bytes(self._paths.student_file, self._paths.backup_file)
        except EngineError as e:
            log.warning("Backup fehlgeschlagen: %s", e)
            return OperationResult.failure(str(e))
        log.info("Backup gespeichert: %s (%d Bytes)", self._paths.backup_file, size)
        return OperationResult.success(f"Backup gespeichert in {self._paths.backup_file}", self._paths.backup_file)

    def restore(self, session: Session, confirmed: bool = False) -> OperationResult:
        """
        Überschreibt die Datensatzdatei mit dem Backup.
        Ohne Bestätigung passiert nichts.
        """
        try:
            session.require(Permission.RESTORE)
            if not confirmed:
                return OperationResult.failure("Wiederherstellung abgebrochen.")
            if not self._paths.backup_file.exists():
                return OperationResult.failure("Backup-Datei nicht gefunden.")
            size = self._storage.copy_bytes(self._paths.backup_file, self._paths.student_file)
        except EngineError as e:
            log.warning("Restore fehlgeschlagen: %s", e)
            return OperationResult.failure(str(e))
        log.info("Restore aus %s (%d Bytes)", self._paths.backup_file, size)
        return OperationResult.success("Wiederherstellung abgeschlossen.")

    def export(self, session: Session, erstellt_am: Optional[datetime] = None) -> OperationResult:
        """
        Schreibt CSV und Bericht aus einem Snapshot.
        Der Store wird nicht verändert.
        """
        try:
            session.require(Permission.EXPORT)
            snapshot = self._repo.load_all()
            if not snapshot:
                return OperationResult.failure("Keine Datensätze für den Export.")

            with open(self._paths.csv_file, "w", encoding="utf-8", newline="") as f:
                f.write(",".join(CSV_HEADER) + "\n")
                f.writelines(row + "\n" for row in csv_rows(snapshot))

            report = render_report(snapshot, erstellt_am or datetime.now())
            with open(self._paths.report_file, "w", encoding="utf-8") as f:
                f.write(report)
        except EngineError as e:
            log.warning("Export fehlgeschlagen: %s", e)
            return OperationResult.failure(str(e))
        except OSError as e:
            log.warning("Export fehlgeschlagen: %s", e)
            return OperationResult.failure(f"Exportdateien konnten nicht erstellt werden ({e}).")

        log.info("%d Datensätze exportiert", len(snapshot))
        return OperationResult.success(
            f"Exportiert nach {self._paths.csv_file} und {self._paths.report_file}",
            (self._paths.csv_file, self._paths.report_file),
        )

    def obfuscate(self, session: Session, key: str) -> OperationResult:
        """
        XOR der Datensatzdatei mit einem Zeichen.
        Mit demselben Schlüssel erneut aufrufen, um zu entschlüsseln.
        """
        try:
            session.require(Permission.OBFUSCATE)
            code = key_byte(key)
            if not self._paths.student_file.exists():
                return OperationResult.failure("Datensatzdatei nicht gefunden.")
            size = self._storage.xor_in_place(self._paths.student_file, code)
        except (EngineError, ValueError) as e:
            log.warning("Verschleierung fehlgeschlagen: %s", e)
            return OperationResult.failure(str(e))
        log.info("XOR auf %s angewendet (%d Bytes)", self._paths.student_file, size)
        return OperationResult.success(f"XOR mit Schlüssel '{key}' angewendet.")
