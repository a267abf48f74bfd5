"""
studenten_register package

Persistenz- und Abfrage-Engine für ein Studenten-Register mit drei Fächern,
Zugangsdaten und Dateiwartung (Backup, Restore, Export, Verschleierung).

Schichtenarchitektur:
- domain.py: Entitäten + Enums, Notenberechnung, Session
- errors.py: Fehlerklassen + OperationResult
- persistence.py: Textdatei-Persistierung der Datensätze
- credentials.py: Zugangsdaten
- query.py: Suche und Sortierung
- service.py: Anwendungsfälle + Statistik
- maintenance.py: Backup, Restore, Export, XOR
- config.py / app_logger.py: Pfade und Logging
- main.py: Einstiegspunkt
"""
