"""Datenmodell für Schülerdaten (Pydantic v2)."""

from typing import Optional

from pydantic import AliasChoices, Field

from models.resource import ResourceType, UntisResource


class Student(UntisResource):
    """Schüler. Zuname in long_name, Vorname in fore_name."""

    type: ResourceType = ResourceType.STUDENT
    fore_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("forename", "foreName", "fore_name"))
    # ID Nummer aus der Schülerverwaltung
    extern_key: Optional[str] = Field(
        None, validation_alias=AliasChoices("externKey", "externkey", "extern_key"))
    # Interne ID der Klasse
    school_class_id: int = Field(
        0, validation_alias=AliasChoices("klasseId", "school_class_id", "schoolClassId"))
