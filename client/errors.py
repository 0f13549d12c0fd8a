"""Fehlerklassen des WebUntis-Clients.

UntisError
 ├── TransportError        Netzwerkfehler, HTTP-Status ≠ 2xx, kein JSON
 ├── ProtocolError         Antwort ohne erwartete Felder (data, result, ...)
 │    └── TimetableFormatError   Wochenstundenplan hat nicht die erwartete Struktur
 ├── RemoteApiError        WebUntis meldet einen Fehler (code + message)
 └── RecordParseError      Einzelne Stunde fehlerhaft (nur intern, wird übersprungen)
"""

from datetime import date
from typing import Optional


class UntisError(Exception):
    """Basisklasse. method gibt an, welche Operation fehlgeschlagen ist."""

    def __init__(self, message: str, method: Optional[str] = None,
                 error_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.method = method
        self.error_code = error_code

    def __str__(self) -> str:
        parts = []
        if self.method:
            parts.append(f"[{self.method}]")
        if self.error_code is not None:
            parts.append(f"(Code {self.error_code})")
        parts.append(self.message)
        return " ".join(parts)


class TransportError(UntisError):
    """Der Dienst ist nicht erreichbar oder liefert einen Fehlerstatus."""


class ProtocolError(UntisError):
    """Die Antwort hat nicht die erwartete Form."""


class TimetableFormatError(ProtocolError):
    """Der Wochenstundenplan einer Klasse/eines Lehrers ist als Ganzes unbrauchbar."""

    def __init__(self, message: str, element_type: int, element_id: int,
                 query_date: date, method: Optional[str] = None) -> None:
        super().__init__(
            f"{message} (elementType={element_type}, elementId={element_id}, "
            f"date={query_date.isoformat()})",
            method=method,
        )
        self.element_type = element_type
        self.element_id = element_id
        self.query_date = query_date


class RemoteApiError(UntisError):
    """WebUntis hat die Anfrage mit einem error-Objekt abgelehnt."""

    @property
    def is_bad_credentials(self) -> bool:
        return "bad credentials" in self.message.lower()


class RecordParseError(UntisError):
    """Eine einzelne Stunde des Wochenstundenplans ist fehlerhaft."""
