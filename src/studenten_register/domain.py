"""
Domain beinhaltet die Entities + Enums

Dieses Modul enthält nur die Fachlogik.
Es enthält keine Datei- oder UI-Logik.

- Entities sind Dataclasses.
- Summe, Prozent und Note werden immer berechnet und nicht gespeichert.
- Die Session ersetzt globale Variablen für den angemeldeten Nutzer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional

from .errors import PermissionDenied


SUBJECTS = ("Math", "Science", "English")
MAX_MARK = 100.0
MAX_NAME_LENGTH = 99
PASS_PERCENTAGE = 50.0


class Grade(Enum):
    """Notenstufen. Die Reihenfolge entspricht den Schwellen."""
    A_PLUS = "A+"
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"

    @classmethod
    def from_percentage(cls, percentage: float) -> Grade:
        """
        Leitet die Note aus dem Prozentwert ab.
        - >= 90 -> A+
        - >= 80 -> A
        - >= 70 -> B
        - >= 60 -> C
        - >= 50 -> D
        - sonst F
        """
        for schwelle, grade in _GRADE_THRESHOLDS:
            if percentage >= schwelle:
                return grade
        return cls.F


_GRADE_THRESHOLDS = (
    (90.0, Grade.A_PLUS),
    (80.0, Grade.A),
    (70.0, Grade.B),
    (60.0, Grade.C),
    (50.0, Grade.D),
)


class Role(Enum):
    """Rollen der Zugangsdaten. Gespeichert in Großbuchstaben."""
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    PRINCIPAL = "PRINCIPAL"
    STUDENT = "STUDENT"
    GUEST = "GUEST"


class Permission(Enum):
    """Aktionen, für die eine Session berechtigt sein muss."""
    VIEW = "view"
    VIEW_OWN = "view_own"
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"
    DELETE_ALL = "delete_all"
    SORT = "sort"
    STATISTICS = "statistics"
    EXPORT = "export"
    BACKUP = "backup"
    RESTORE = "restore"
    OBFUSCATE = "obfuscate"
    MANAGE_CREDENTIALS = "manage_credentials"


_REPORTS = frozenset({Permission.EXPORT, Permission.BACKUP, Permission.RESTORE})

ROLE_PERMISSIONS = {
    Role.ADMIN: frozenset(Permission),
    Role.STAFF: frozenset({
        Permission.VIEW, Permission.VIEW_OWN, Permission.ADD, Permission.UPDATE,
        Permission.DELETE, Permission.SORT, Permission.STATISTICS,
    }) | _REPORTS,
    Role.PRINCIPAL: frozenset({
        Permission.VIEW, Permission.VIEW_OWN, Permission.STATISTICS,
    }) | _REPORTS,
    Role.GUEST: frozenset({Permission.VIEW, Permission.VIEW_OWN}) | _REPORTS,
    Role.STUDENT: frozenset({Permission.VIEW_OWN}),
}


@dataclass(slots=True)
class StudentRecord:
    """
    Ein Studierender mit drei Fachnoten.
    - id wird vom Aufrufer vergeben und muss eindeutig sein.
    - marks in der Reihenfolge von SUBJECTS.
    - total, percentage, grade sind abgeleitet.
    """
    id: int
    name: str
    marks: List[float]
    total: float = field(init=False, default=0.0)
    percentage: float = field(init=False, default=0.0)
    grade: Grade = field(init=False, default=Grade.F)

    def __post_init__(self) -> None:
        """Prüft Grundregeln und berechnet die abgeleiteten Felder."""
        self.name = validate_name(self.name)
        if len(self.marks) != len(SUBJECTS):
            raise ValueError(
                f"Es werden {len(SUBJECTS)} Noten erwartet, erhalten: {len(self.marks)}."
            )
        self.marks = [validate_mark(m) for m in self.marks]
        recompute(self)

    @property
    def passed(self) -> bool:
        """Bestanden ab 50 Prozent."""
        return self.percentage >= PASS_PERCENTAGE


def validate_name(name: str) -> str:
    """Liefert den getrimmten Namen oder wirft ValueError."""
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValueError("Name darf nicht leer sein.")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise ValueError(f"Name darf höchstens {MAX_NAME_LENGTH} Zeichen haben.")
    # eine Zeile pro Datensatz
    if cleaned.splitlines() != [cleaned]:
        raise ValueError("Name darf keinen Zeilenumbruch enthalten.")
    return cleaned


def validate_mark(mark: float) -> float:
    """Eine Fachnote muss im Bereich 0..100 liegen."""
    value = float(mark)
    if not (0.0 <= value <= MAX_MARK):
        raise ValueError(f"Note muss im Bereich 0..100 liegen, ist aber {value}.")
    return value


def recompute(record: StudentRecord) -> StudentRecord:
    """
    Berechnet Summe, Prozent und Note neu.
    Keine Ein-/Ausgabe, nur der übergebene Datensatz wird geändert.
    """
    record.total = sum(record.marks)
    # erst multiplizieren, damit glatte Summen exakt bleiben
    record.percentage = record.total * 100.0 / (MAX_MARK * len(SUBJECTS))
    record.grade = Grade.from_percentage(record.percentage)
    return record


@dataclass(slots=True)
class CredentialEntry:
    """
    Zugangsdaten eines Nutzers.
    Passwörter liegen im Klartext vor (Format der Datei).
    """
    username: str
    password: str
    role: Role

    def __post_init__(self) -> None:
        """Benutzername und Passwort sind einzelne Tokens ohne Leerzeichen."""
        validate_token("Benutzername", self.username)
        validate_token("Passwort", self.password)
        if not isinstance(self.role, Role):
            self.role = parse_role(self.role)


def validate_token(label: str, value: str) -> str:
    """Ein einzelnes Wort ohne Leerzeichen, z.B. Benutzername oder Passwort."""
    if not value or any(c.isspace() for c in value):
        raise ValueError(f"{label} muss ein Wort ohne Leerzeichen sein.")
    return value


def parse_role(raw: str) -> Role:
    """Rolle aus Text, Groß/Klein egal. Unbekannte Rollen -> ValueError."""
    s = str(raw).strip().upper()
    if s not in Role.__members__:
        raise ValueError(f"Unbekannte Rolle: {raw!r}.")
    return Role[s]


@dataclass(frozen=True, slots=True)
class Session:
    """
    Angemeldeter Nutzer.
    Wird explizit an alle Operationen übergeben, die Rechte prüfen.
    """
    username: str
    role: Role

    @property
    def permissions(self) -> FrozenSet[Permission]:
        return ROLE_PERMISSIONS.get(self.role, frozenset())

    def allows(self, permission: Permission) -> bool:
        return permission in self.permissions

    def require(self, permission: Permission) -> None:
        """Wirft PermissionDenied, wenn die Rolle die Aktion nicht erlaubt."""
        if not self.allows(permission):
            raise PermissionDenied(
                f"Keine Berechtigung: {self.role.value} darf '{permission.value}' nicht ausführen."
            )

    def own_id(self) -> Optional[int]:
        """Numerischer Benutzername = eigene Matrikelnummer."""
        return int(self.username) if self.username.isdigit() else None
