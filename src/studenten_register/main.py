"""
Entry point für die Wartungsbefehle.
Dieses Modul verbindet Konfiguration, Logging und Services.

Es gibt kein interaktives Menü. Befehle:
    init, stats, backup, restore --yes, export, obfuscate KEY
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from .app_logger import setup_logging
from .config import EnginePaths
from .credentials import CredentialService, FileCredentialRepository
from .errors import EngineError, OperationResult
from .maintenance import MaintenanceService
from .persistence import FileRecordRepository
from .service import RecordService, StatisticsReport


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="studenten-register", description="Wartung des Studenten-Registers")
    parser.add_argument("--data-dir", default=None, help="Datenverzeichnis (Default: SRMS_DATA_DIR oder .)")
    parser.add_argument("--user", default="admin")
    parser.add_argument("--password", default="admin")
    parser.add_argument("--log-level", default=None)

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init", help="Standard-Zugangsdaten anlegen")
    sub.add_parser("stats", help="Statistik anzeigen")
    sub.add_parser("backup", help="Backup der Datensatzdatei")
    restore = sub.add_parser("restore", help="Backup zurückspielen")
    restore.add_argument("--yes", action="store_true", help="Überschreiben bestätigen")
    sub.add_parser("export", help="CSV und Bericht erzeugen")
    obfuscate = sub.add_parser("obfuscate", help="XOR mit einem Zeichen anwenden")
    obfuscate.add_argument("key")
    return parser


def format_statistics(report: StatisticsReport) -> str:
    return (
        f"Total Students: {report.count}\n"
        f"Average Percentage: {report.mean_percentage:.2f}\n"
        f"Highest: {report.highest.percentage:.2f} ({report.highest.name}, Roll {report.highest.id})\n"
        f"Lowest: {report.lowest.percentage:.2f} ({report.lowest.name}, Roll {report.lowest.id})\n"
        f"Pass Count: {report.passed}\n"
        f"Fail Count: {report.failed}"
    )


def run(argv: Optional[List[str]] = None) -> int:
    """
    Führt einen Befehl aus und liefert den Exit-Code.
    Ablauf:
    - Pfade bestimmen
    - Standard-Zugangsdaten sicherstellen
    - anmelden
    - Befehl ausführen
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    paths = EnginePaths.from_env(args.data_dir)
    cred_repo = FileCredentialRepository(paths.credential_file)
    created = cred_repo.ensure_defaults()

    if args.command == "init":
        print("Zugangsdaten angelegt." if created else "Zugangsdaten existieren bereits.")
        return 0

    login = CredentialService(cred_repo).login(args.user, args.password)
    if not login:
        print(f"FEHLER: {login.message}")
        return 1
    session = login.value

    records = RecordService(FileRecordRepository(paths.student_file))
    maintenance = MaintenanceService(paths)

    result: OperationResult
    if args.command == "stats":
        result = records.statistics(session)
        if result:
            print(format_statistics(result.value))
            return 0
    elif args.command == "backup":
        result = maintenance.backup(session)
    elif args.command == "restore":
        result = maintenance.restore(session, confirmed=args.yes)
    elif args.command == "export":
        result = maintenance.export(session)
    else:
        result = maintenance.obfuscate(session, args.key)

    print(result.message if result else f"FEHLER: {result.message}")
    return 0 if result else 1


def main() -> None:
    """Startpunkt der Anwendung."""
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        # Sauberer Abbruch per Strg+C.
        print("\nAbgebrochen.")
        sys.exit(0)
    except EngineError as e:
        print(f"FEHLER: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
