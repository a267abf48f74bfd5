"""
Persistence layer (Textdatei)

Hier liegt die Speicherung der Datensätze. Die Domain selbst bleibt frei von Dateidetails.
- RecordRepository: Schnittstelle (laden / anhängen / überschreiben)
- FileRecordRepository: Datei-Repository
- RecordCodec: Mapping zwischen StudentRecord und einer Zeile
- FileStorage: reines Datei-Handling

Zeilenformat: id|name|mark1|mark2|mark3
Es gibt keinen Cache. Jede Operation liest die Datei neu.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Union

from .app_logger import get_logger
from .domain import MAX_NAME_LENGTH, SUBJECTS, StudentRecord
from .errors import MalformedLine, StorageError

log = get_logger("persistence")

PathLike = Union[str, Path]

DELIMITER = "|"
CHUNK_SIZE = 4096


class RecordRepository(Protocol):
    """
    Schnittstelle für Persistenz.
    """
    def load_all(self) -> List[StudentRecord]:
        """Lädt alle Datensätze."""
        ...

    def exists(self, record_id: int) -> bool:
        """Prüft, ob die Matrikelnummer vorhanden ist."""
        ...

    def append(self, record: StudentRecord) -> None:
        """Hängt einen Datensatz an."""
        ...

    def overwrite_all(self, records: Iterable[StudentRecord]) -> None:
        """Ersetzt den kompletten Inhalt."""
        ...


class FileStorage:
    """
    Klasse für Dateihandling beim Laden und Speichern.
    - Nur lesen/schreiben/kopieren.
    - UTF-8 wird fest genutzt.
    - OSError wird in StorageError übersetzt.
    """

    def read_lines(self, pfad: PathLike) -> List[str]:
        """
        Liest eine Datei zeilenweise.
        - Fehlende Datei -> leere Liste
        - Nicht dekodierbare Bytes werden ersetzt (z.B. verschlüsselte Datei)
        """
        try:
            with open(pfad, "r", encoding="utf-8", errors="replace") as f:
                return [line.rstrip("\r\n") for line in f]
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(f"Datei nicht lesbar: {pfad} ({e})", path=str(pfad)) from e

    def append_line(self, pfad: PathLike, line: str) -> None:
        """Hängt eine Zeile an, die Datei wird bei Bedarf angelegt."""
        try:
            with open(pfad, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            raise StorageError(f"Datei nicht beschreibbar: {pfad} ({e})", path=str(pfad)) from e

    def write_lines(self, pfad: PathLike, lines: Iterable[str]) -> None:
        """
        Schreibt alle Zeilen in eine temporäre Datei im selben Verzeichnis
        und ersetzt danach das Original per os.replace.
        Ein Absturz beim Schreiben lässt die alte Datei unverändert.
        """
        target = Path(pfad)
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                for line in lines:
                    f.write(line + "\n")
            if target.exists():
                shutil.copymode(target, tmp_name)
            os.replace(tmp_name, target)
            tmp_name = None
        except OSError as e:
            raise StorageError(f"Datei nicht beschreibbar: {pfad} ({e})", path=str(pfad)) from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.remove(tmp_name)

    def copy_bytes(self, quelle: PathLike, ziel: PathLike) -> int:
        """
        Kopiert eine Datei Byte für Byte.
        Liefert die Anzahl kopierter Bytes.
        """
        try:
            with open(quelle, "rb") as src, open(ziel, "wb") as dst:
                shutil.copyfileobj(src, dst, CHUNK_SIZE)
                return dst.tell()
        except FileNotFoundError as e:
            raise StorageError(f"Datei nicht gefunden: {e.filename}", path=str(e.filename)) from e
        except OSError as e:
            raise StorageError(f"Kopieren fehlgeschlagen: {quelle} -> {ziel} ({e})", path=str(ziel)) from e

    def xor_in_place(self, pfad: PathLike, key: int) -> int:
        """
        XOR jedes Bytes mit key, direkt in der Datei.
        Gelesen und geschrieben wird in Blöcken von CHUNK_SIZE.
        """
        processed = 0
        try:
            with open(pfad, "r+b") as f:
                while True:
                    pos = f.tell()
                    chunk = f.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    f.seek(pos)
                    f.write(bytes(b ^ key for b in chunk))
                    processed += len(chunk)
        except FileNotFoundError as e:
            raise StorageError(f"Datei nicht gefunden: {pfad}", path=str(pfad)) from e
        except OSError as e:
            raise StorageError(f"Datei nicht bearbeitbar: {pfad} ({e})", path=str(pfad)) from e
        return processed


class RecordCodec:
    """
    Wandelt StudentRecord <-> Zeile.
    - Noten mit genau zwei Nachkommastellen.
    - Trennzeichen im Namen wird nicht maskiert (bekannte Einschränkung).
    - Abgeleitete Felder werden nie gelesen, sondern neu berechnet.
    """

    def encode(self, record: StudentRecord) -> str:
        """Macht aus dem Datensatz eine Zeile ohne Zeilenumbruch."""
        parts = [str(record.id), record.name]
        parts.extend(f"{m:.2f}" for m in record.marks)
        return DELIMITER.join(parts)

    def decode(self, line: str) -> StudentRecord:
        """
        Baut einen Datensatz aus einer Zeile.
        - id und Name sind Pflicht
        - fehlende Noten am Ende werden 0.0
        - alles andere Ungültige -> MalformedLine
        """
        fields = line.rstrip("\r\n").split(DELIMITER)
        if len(fields) < 2:
            raise MalformedLine("Zu wenige Felder.", line=line)

        try:
            record_id = int(fields[0].strip())
        except ValueError as e:
            raise MalformedLine(f"Ungültige id: {fields[0]!r}", line=line) from e

        name = fields[1][:MAX_NAME_LENGTH]

        raw_marks = fields[2:2 + len(SUBJECTS)]
        raw_marks += ["0"] * (len(SUBJECTS) - len(raw_marks))

        try:
            marks = [float(m) for m in raw_marks]
            return StudentRecord(id=record_id, name=name, marks=marks)
        except ValueError as e:
            raise MalformedLine(str(e), line=line) from e


class FileRecordRepository:
    """
    Repository für die Datensatzdatei.
    - FileStorage für Datei-Zugriff
    - RecordCodec für Mapping
    """

    def __init__(
        self,
        pfad: PathLike,
        storage: Optional[FileStorage] = None,
        codec: Optional[RecordCodec] = None
    ) -> None:
        """
        Erstellt das Repository.
        """
        self._pfad = Path(pfad)
        self._storage = storage or FileStorage()
        self._codec = codec or RecordCodec()

    @property
    def path(self) -> Path:
        return self._pfad

    def load_all(self) -> List[StudentRecord]:
        """
        Lädt die Datei und baut die Domain-Objekte.
        Defekte Zeilen werden übersprungen.
        """
        records: List[StudentRecord] = []
        for nr, line in enumerate(self._storage.read_lines(self._pfad), start=1):
            if not line.strip():
                continue
            try:
                records.append(self._codec.decode(line))
            except MalformedLine as e:
                log.debug("Zeile %d übersprungen (%s): %s", nr, self._pfad, e)
        log.debug("%d Datensätze geladen aus %s", len(records), self._pfad)
        return records

    def exists(self, record_id: int) -> bool:
        return any(r.id == record_id for r in self.load_all())

    def append(self, record: StudentRecord) -> None:
        """
        Hängt eine Zeile an.
        Die Eindeutigkeit prüft der Aufrufer vorher mit exists().
        """
        self._storage.append_line(self._pfad, self._codec.encode(record))
        log.info("Datensatz %d angehängt", record.id)

    def overwrite_all(self, records: Iterable[StudentRecord]) -> None:
        """
        Serialisiert alle Datensätze in der gegebenen Reihenfolge und ersetzt die Datei.
        """
        lines = [self._codec.encode(r) for r in records]
        self._storage.write_lines(self._pfad, lines)
        log.info("%d Datensätze gespeichert in %s", len(lines), self._pfad)
