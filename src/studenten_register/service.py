"""
Application/Use-Case layer

Der RecordService bildet die Anwendungsfälle der Datensätze ab.
Er holt einen Snapshot aus dem Repository, ändert ihn im Speicher und schreibt
ihn wieder komplett zurück. Rechte werden über die übergebene Session geprüft.

Jeder Anwendungsfall liefert ein OperationResult. Exceptions der unteren
Schichten werden hier abgefangen.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .app_logger import get_logger
from .domain import (
    PASS_PERCENTAGE,
    Permission,
    Session,
    StudentRecord,
    recompute,
    validate_mark,
    validate_name,
)
from .errors import DuplicateId, EmptyStore, EngineError, NotFound, OperationResult
from .persistence import RecordRepository
from .query import (
    SortOrder,
    search_by_grade,
    search_by_id,
    search_by_name,
    search_by_percentage,
    sort_records,
)

log = get_logger("service")


@dataclass(slots=True)
class StatisticsReport:
    """
    Kennzahlen über alle Datensätze.
    Bei gleichen Prozentwerten zählt jeweils der erste Datensatz.
    """
    count: int
    mean_percentage: float
    highest: StudentRecord
    lowest: StudentRecord
    passed: int
    failed: int


def compute_statistics(snapshot: Sequence[StudentRecord]) -> StatisticsReport:
    """
    Berechnet die Statistik in einem Durchlauf.
    - leerer Snapshot -> EmptyStore
    - bestanden: Prozent >= 50
    """
    if not snapshot:
        raise EmptyStore("Keine Datensätze vorhanden.")

    summe = 0.0
    passed = 0
    highest = lowest = snapshot[0]

    for r in snapshot:
        summe += r.percentage
        # Nur echt größer/kleiner, damit der erste bei Gleichstand bleibt
        if r.percentage > highest.percentage:
            highest = r
        if r.percentage < lowest.percentage:
            lowest = r
        if r.percentage >= PASS_PERCENTAGE:
            passed += 1

    count = len(snapshot)
    return StatisticsReport(
        count=count,
        mean_percentage=summe / count,
        highest=highest,
        lowest=lowest,
        passed=passed,
        failed=count - passed,
    )


class RecordService:
    """
    Service für die Datensätze.
    Er liest Daten über das Repository, prüft Rechte und liefert Ergebnisse.
    """

    def __init__(self, repo: RecordRepository) -> None:
        self._repo = repo

    def _run(
        self,
        session: Session,
        permission: Permission,
        action: Callable[[], OperationResult],
    ) -> OperationResult:
        """
        Gemeinsamer Rahmen für alle Anwendungsfälle.
        - Rechte prüfen
        - Fehler in ein OperationResult übersetzen
        """
        try:
            session.require(permission)
            return action()
        except (EngineError, ValueError) as e:
            log.warning("%s (%s): %s", permission.value, session.username, e)
            return OperationResult.failure(str(e))

    # Anlegen / Lesen

    def add_student(self, session: Session, record_id: int, name: str, marks: Sequence[float]) -> OperationResult:
        """
        Legt einen Datensatz an.
        Die Eindeutigkeit wird vor dem Anhängen geprüft.
        """
        def action() -> OperationResult:
            record = StudentRecord(id=int(record_id), name=name, marks=list(marks))
            if self._repo.exists(record.id):
                raise DuplicateId(f"Matrikelnummer {record.id} existiert bereits.")
            self._repo.append(record)
            return OperationResult.success("Datensatz angelegt.", record)

        return self._run(session, Permission.ADD, action)

    def list_students(self, session: Session) -> OperationResult:
        def action() -> OperationResult:
            records = self._repo.load_all()
            if not records:
                return OperationResult.success("Keine Datensätze vorhanden.", [])
            return OperationResult.success(f"{len(records)} Datensätze.", records)

        return self._run(session, Permission.VIEW, action)

    def find_student(self, session: Session, record_id: int) -> OperationResult:
        def action() -> OperationResult:
            record = search_by_id(self._repo.load_all(), record_id)
            if record is None:
                raise NotFound(f"Matrikelnummer {record_id} nicht gefunden.")
            return OperationResult.success("Datensatz gefunden.", record)

        return self._run(session, Permission.VIEW, action)

    def search_name(self, session: Session, query: str) -> OperationResult:
        return self._search(session, lambda snap: search_by_name(snap, query))

    def search_percentage(self, session: Session, lo: float, hi: float) -> OperationResult:
        return self._search(session, lambda snap: search_by_percentage(snap, lo, hi))

    def search_grade(self, session: Session, grade: str) -> OperationResult:
        return self._search(session, lambda snap: search_by_grade(snap, grade))

    def _search(
        self,
        session: Session,
        query: Callable[[List[StudentRecord]], List[StudentRecord]],
    ) -> OperationResult:
        def action() -> OperationResult:
            treffer = query(self._repo.load_all())
            if not treffer:
                return OperationResult.success("Keine passenden Datensätze gefunden.", [])
            return OperationResult.success(f"{len(treffer)} Treffer.", treffer)

        return self._run(session, Permission.VIEW, action)

    def own_record(self, session: Session) -> OperationResult:
        """
        Datensatz des angemeldeten Nutzers.
        - numerischer Benutzername -> Matrikelnummer
        - sonst Name, Groß/Klein egal
        """
        def action() -> OperationResult:
            snapshot = self._repo.load_all()
            own_id = session.own_id()
            if own_id is not None:
                record = search_by_id(snapshot, own_id)
            else:
                wanted = session.username.casefold()
                record = next((r for r in snapshot if r.name.casefold() == wanted), None)
            if record is None:
                raise NotFound(f"Kein Datensatz für {session.username} gefunden.")
            return OperationResult.success("Eigener Datensatz.", record)

        return self._run(session, Permission.VIEW_OWN, action)

    # Ändern / Löschen

    def update_student(
        self,
        session: Session,
        record_id: int,
        name: Optional[str] = None,
        marks: Optional[Sequence[Optional[float]]] = None,
    ) -> OperationResult:
        """
        Ändert Name und/oder Noten.
        - None bzw. leerer Name -> unverändert
        - marks: Liste mit drei Einträgen, None -> Fach unverändert
        """
        def action() -> OperationResult:
            snapshot = self._repo.load_all()
            record = search_by_id(snapshot, record_id)
            if record is None:
                raise NotFound(f"Matrikelnummer {record_id} nicht gefunden.")

            new_name = record.name
            if name is not None and name.strip():
                new_name = validate_name(name)

            new_marks = list(record.marks)
            if marks is not None:
                if len(marks) != len(new_marks):
                    raise ValueError(f"Es werden {len(new_marks)} Noten erwartet.")
                for i, m in enumerate(marks):
                    if m is not None:
                        new_marks[i] = validate_mark(m)

            record.name = new_name
            record.marks = new_marks
            recompute(record)
            self._repo.overwrite_all(snapshot)
            return OperationResult.success("Datensatz aktualisiert.", record)

        return self._run(session, Permission.UPDATE, action)

    def delete_student(self, session: Session, record_id: int) -> OperationResult:
        def action() -> OperationResult:
            snapshot = self._repo.load_all()
            rest = [r for r in snapshot if r.id != record_id]
            if len(rest) == len(snapshot):
                raise NotFound(f"Matrikelnummer {record_id} nicht gefunden.")
            self._repo.overwrite_all(rest)
            return OperationResult.success("Datensatz gelöscht.")

        return self._run(session, Permission.DELETE, action)

    def delete_all(self, session: Session, confirmed: bool = False) -> OperationResult:
        """Leert die Datei. Nur mit ausdrücklicher Bestätigung."""
        def action() -> OperationResult:
            if not confirmed:
                return OperationResult.failure("Löschen abgebrochen.")
            self._repo.overwrite_all([])
            return OperationResult.success("Alle Datensätze gelöscht.")

        return self._run(session, Permission.DELETE_ALL, action)

    # Sortieren / Statistik

    def sort_students(self, session: Session, order: SortOrder) -> OperationResult:
        """Sortiert einen Snapshot. Gespeichert wird erst mit save_order()."""
        def action() -> OperationResult:
            records = sort_records(self._repo.load_all(), order)
            if not records:
                return OperationResult.failure("Keine Datensätze zum Sortieren.")
            return OperationResult.success("Sortiert.", records)

        return self._run(session, Permission.SORT, action)

    def save_order(self, session: Session, records: Sequence[StudentRecord]) -> OperationResult:
        """Speichert eine zuvor sortierte Liste in dieser Reihenfolge."""
        def action() -> OperationResult:
            for r in records:
                recompute(r)
            self._repo.overwrite_all(records)
            return OperationResult.success("Reihenfolge gespeichert.")

        return self._run(session, Permission.SORT, action)

    def statistics(self, session: Session) -> OperationResult:
        def action() -> OperationResult:
            report = compute_statistics(self._repo.load_all())
            return OperationResult.success("Statistik berechnet.", report)

        return self._run(session, Permission.STATISTICS, action)
