"""Basismodell für alle WebUntis-Ressourcen (Pydantic v2).

Die Feldnamen des Dienstes ("id", "name", "longName", ...) werden über
Validierungs-Aliase auf die Feldnamen des Domänenmodells abgebildet.
"""

from enum import IntEnum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ResourceType(IntEnum):
    """Element-Typen, wie sie WebUntis in den JSON-Antworten liefert."""
    SCHOOL_CLASS = 1
    TEACHER = 2
    SUBJECT = 3
    ROOM = 4
    STUDENT = 5
    TIMETABLE = 6


class UntisResource(BaseModel):
    """Gemeinsame Felder aller Ressourcen (Klassen, Lehrer, Fächer, Räume, Schüler)."""

    model_config = ConfigDict(extra="ignore")

    type: ResourceType
    # Interne ID, innerhalb einer Sitzung stabil; einziger Join-Schlüssel zu den Stunden
    internal_id: int = Field(
        validation_alias=AliasChoices("id", "internal_id", "internalId"))
    # Kürzel ("4BHIF", "SZ", "POS1")
    unique_name: str = Field(
        validation_alias=AliasChoices("name", "unique_name", "uniqueName"))
    # Wird manchmal gesetzt
    display_name: str = Field(
        "", validation_alias=AliasChoices("displayname", "displayName", "display_name"))
    # Detaillierte Beschreibung oder Zuname bei Personen
    long_name: str = Field(
        "", validation_alias=AliasChoices("longName", "longname", "long_name"))
    # Bei Fächern oder Klassen mit Schwerpunkten
    alternate_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("alternatename", "alternateName", "alternate_name"))

    @field_validator("display_name", "long_name", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    def __str__(self) -> str:
        return self.unique_name
