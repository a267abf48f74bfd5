"""
Zugangsdaten (Textdatei)

Format je Zeile: username password ROLE, durch Leerzeichen getrennt.
- FileCredentialRepository: lesen, anhängen, neu schreiben
- CredentialService: Anmeldung und Nutzerverwaltung mit OperationResult

Wichtig:
- check() nimmt den ersten passenden Eintrag.
- reset_password() und remove() betreffen alle Zeilen mit dem Benutzernamen.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

from .app_logger import get_logger
from .domain import CredentialEntry, Permission, Role, Session, validate_token
from .errors import EngineError, InvalidCredentials, NotFound, OperationResult
from .persistence import FileStorage

log = get_logger("credentials")

DEFAULT_CREDENTIALS = (
    ("admin", "admin", Role.ADMIN),
    ("staff", "staff", Role.STAFF),
    ("guest", "guest", Role.GUEST),
    ("principal", "principal", Role.PRINCIPAL),
    ("student", "student", Role.STUDENT),
)


def _parse_role(raw: str, default: Role = Role.GUEST) -> Role:
    """
    Parst eine Rolle aus der Datei.

    Wenn nichts passt:
    - default wird zurückgegeben.
    """
    s = str(raw).strip().upper()
    if s in Role.__members__:
        return Role[s]
    return default


class FileCredentialRepository:
    """
    Repository für die Datei mit Zugangsdaten.
    Jede Operation liest die Datei neu.
    """

    def __init__(self, pfad: Union[str, Path], storage: Optional[FileStorage] = None) -> None:
        self._pfad = Path(pfad)
        self._storage = storage or FileStorage()

    @property
    def path(self) -> Path:
        return self._pfad

    def encode(self, entry: CredentialEntry) -> str:
        return f"{entry.username} {entry.password} {entry.role.value}"

    def load_all(self) -> List[CredentialEntry]:
        """
        Liest alle Einträge.
        Zeilen ohne genau drei Tokens werden übersprungen.
        """
        entries: List[CredentialEntry] = []
        for line in self._storage.read_lines(self._pfad):
            tokens = line.split()
            if len(tokens) != 3:
                continue
            user, password, role = tokens
            entries.append(CredentialEntry(user, password, _parse_role(role)))
        return entries

    def ensure_defaults(self) -> bool:
        """
        Legt beim ersten Start die Standard-Nutzer an.
        Liefert True, wenn die Datei neu geschrieben wurde.
        """
        if self._pfad.exists():
            return False
        entries = [CredentialEntry(u, p, r) for u, p, r in DEFAULT_CREDENTIALS]
        self._storage.write_lines(self._pfad, [self.encode(e) for e in entries])
        log.info("Standard-Zugangsdaten angelegt in %s", self._pfad)
        return True

    def check(self, username: str, password: str) -> Role:
        """Erster exakter Treffer auf Benutzer und Passwort gewinnt."""
        for e in self.load_all():
            if e.username == username and e.password == password:
                return e.role
        raise InvalidCredentials("Ungültige Zugangsdaten.")

    def add(self, username: str, password: str, role: Union[str, Role]) -> CredentialEntry:
        """
        Hängt einen Eintrag an.
        Doppelte Benutzernamen werden nicht verhindert.
        """
        entry = CredentialEntry(username, password, role)
        self._storage.append_line(self._pfad, self.encode(entry))
        log.info("Nutzer %s (%s) angelegt", entry.username, entry.role.value)
        return entry

    def _matches(self, line: str, username: str) -> bool:
        tokens = line.split()
        return len(tokens) == 3 and tokens[0] == username

    def reset_password(self, username: str, new_password: str) -> int:
        """
        Setzt das Passwort in allen Zeilen mit diesem Benutzernamen.
        Alle anderen Zeilen werden unverändert zurückgeschrieben.
        Ohne Treffer -> NotFound, die Datei bleibt unverändert.
        """
        validate_token("Passwort", new_password)
        lines = self._storage.read_lines(self._pfad)
        treffer = 0
        for i, line in enumerate(lines):
            if self._matches(line, username):
                user, _, role = line.split()
                lines[i] = f"{user} {new_password} {role}"
                treffer += 1
        if not treffer:
            raise NotFound(f"Nutzer {username} nicht gefunden.")
        self._storage.write_lines(self._pfad, lines)
        log.info("Passwort für %s zurückgesetzt (%d Einträge)", username, treffer)
        return treffer

    def remove(self, username: str) -> int:
        """Entfernt alle Zeilen mit diesem Benutzernamen, der Rest bleibt wie gelesen."""
        lines = self._storage.read_lines(self._pfad)
        rest = [line for line in lines if not self._matches(line, username)]
        entfernt = len(lines) - len(rest)
        if not entfernt:
            raise NotFound(f"Nutzer {username} nicht gefunden.")
        self._storage.write_lines(self._pfad, rest)
        log.info("Nutzer %s entfernt (%d Einträge)", username, entfernt)
        return entfernt


class CredentialService:
    """
    Anmeldung und Nutzerverwaltung.
    Verwaltung nur mit MANAGE_CREDENTIALS.
    """

    def __init__(self, repo: FileCredentialRepository) -> None:
        self._repo = repo

    def login(self, username: str, password: str) -> OperationResult:
        """Liefert bei Erfolg eine Session als value."""
        try:
            role = self._repo.check(username, password)
        except EngineError as e:
            log.warning("Anmeldung für %s fehlgeschlagen", username)
            return OperationResult.failure(str(e))
        return OperationResult.success(f"Willkommen {username} [{role.value}]", Session(username, role))

    def add_user(self, session: Session, username: str, password: str, role: str) -> OperationResult:
        try:
            session.require(Permission.MANAGE_CREDENTIALS)
            entry = self._repo.add(username, password, role)
        except (EngineError, ValueError) as e:
            return OperationResult.failure(str(e))
        return OperationResult.success("Nutzer angelegt.", entry)

    def reset_password(self, session: Session, username: str, new_password: str) -> OperationResult:
        try:
            session.require(Permission.MANAGE_CREDENTIALS)
            count = self._repo.reset_password(username, new_password)
        except (EngineError, ValueError) as e:
            return OperationResult.failure(str(e))
        return OperationResult.success("Passwort zurückgesetzt.", count)

    def remove_user(self, session: Session, username: str) -> OperationResult:
        try:
            session.require(Permission.MANAGE_CREDENTIALS)
            count = self._repo.remove(username)
        except (EngineError, ValueError) as e:
            return OperationResult.failure(str(e))
        return OperationResult.success("Nutzer entfernt.", count)
