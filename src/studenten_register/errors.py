"""
Fehlerklassen und Ergebnisobjekt

Die unteren Schichten (Codec, Store, Query) werfen Exceptions.
Die Services fangen sie an ihrer Grenze ab und liefern ein OperationResult.
Damit beendet die Engine nie den Prozess.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class EngineError(Exception):
    """Basisklasse aller Fehler der Engine."""


class StorageError(EngineError):
    """
    Datei konnte nicht geöffnet, gelesen oder geschrieben werden.
    Der Pfad wird für die Meldung mitgeführt.
    """

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class MalformedLine(EngineError):
    """Eine Zeile der Datensatzdatei ist nicht lesbar."""

    def __init__(self, message: str, *, line: str = "") -> None:
        super().__init__(message)
        self.line = line


class NotFound(EngineError):
    """Matrikelnummer oder Benutzername existiert nicht."""


class DuplicateId(EngineError):
    """Matrikelnummer ist bereits vergeben."""


class InvalidRange(EngineError):
    """Ungültige Bereichsgrenzen. Die Bereichssuche prüft die Grenzen nicht."""


class EmptyStore(EngineError):
    """Statistik ohne Datensätze."""


class InvalidCredentials(EngineError):
    """Benutzername oder Passwort falsch."""


class PermissionDenied(EngineError):
    """Die Rolle der Session erlaubt die Aktion nicht."""


@dataclass(slots=True)
class OperationResult:
    """
    Ergebnis einer Operation für den Aufrufer (z.B. Menü).
    - ok: Erfolg ja/nein
    - message: lesbarer Grund
    - value: optionales Ergebnis (Datensatz, Liste, Statistik)
    """
    ok: bool
    message: str
    value: Any = None

    @classmethod
    def success(cls, message: str, value: Any = None) -> OperationResult:
        return cls(True, message, value)

    @classmethod
    def failure(cls, message: str) -> OperationResult:
        return cls(False, message)

    def __bool__(self) -> bool:
        return self.ok
