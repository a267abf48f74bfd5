"""
Suche und Sortierung auf einem Snapshot.

Alle Funktionen arbeiten nur auf der übergebenen Liste.
Der Store wird nie verändert. Sortieren speichert nicht automatisch.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Sequence, Union

from .domain import Grade, StudentRecord


class SortOrder(Enum):
    """Mögliche Sortierungen."""
    ID_ASC = "id_asc"
    ID_DESC = "id_desc"
    NAME = "name"
    TOTAL_DESC = "total_desc"


def search_by_name(snapshot: Sequence[StudentRecord], query: str) -> List[StudentRecord]:
    """Teilstring im Namen, Groß/Klein egal. Leere Suche liefert alle."""
    needle = (query or "").casefold()
    return [r for r in snapshot if needle in r.name.casefold()]


def search_by_id(snapshot: Sequence[StudentRecord], record_id: int) -> Optional[StudentRecord]:
    for r in snapshot:
        if r.id == record_id:
            return r
    return None


def search_by_percentage(snapshot: Sequence[StudentRecord], lo: float, hi: float) -> List[StudentRecord]:
    """
    Prozentbereich [lo, hi], beide Grenzen inklusive.
    Vertauschte Grenzen werden nicht geprüft und liefern eine leere Liste.
    """
    return [r for r in snapshot if lo <= r.percentage <= hi]


def search_by_grade(snapshot: Sequence[StudentRecord], grade: Union[str, Grade]) -> List[StudentRecord]:
    """Exakter Vergleich mit dem Notentoken (z.B. 'a+'), Groß/Klein egal."""
    token = str(grade.value if isinstance(grade, Grade) else grade).strip().casefold()
    return [r for r in snapshot if r.grade.value.casefold() == token]


def sort_records(snapshot: Sequence[StudentRecord], order: SortOrder) -> List[StudentRecord]:
    """
    Liefert eine neue, sortierte Liste.
    sorted() ist stabil, auch mit reverse=True. Gleiche Summen behalten
    ihre ursprüngliche Reihenfolge.
    """
    if order is SortOrder.ID_ASC:
        return sorted(snapshot, key=lambda r: r.id)
    if order is SortOrder.ID_DESC:
        return sorted(snapshot, key=lambda r: r.id, reverse=True)
    if order is SortOrder.NAME:
        return sorted(snapshot, key=lambda r: r.name.casefold())
    if order is SortOrder.TOTAL_DESC:
        return sorted(snapshot, key=lambda r: r.total, reverse=True)
    raise ValueError(f"Unbekannte Sortierung: {order!r}")
