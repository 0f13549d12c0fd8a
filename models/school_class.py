"""Datenmodell für eine Schulklasse (Pydantic v2)."""

from typing import Optional

from pydantic import AliasChoices, Field, field_validator

from models.resource import ResourceType, UntisResource
from models.teacher import Teacher


class SchoolClass(UntisResource):
    """Repräsentiert eine Klasse (z.B. 4BHIF).

    class_teacher ist nach dem Laden zunächst nur ein Platzhalter mit dem
    Kürzel aus der Klassenliste. Der Cache ersetzt ihn einmalig durch die
    Lehrkraft aus der Lehrerliste; ohne Treffer bleibt der Platzhalter stehen.
    """

    type: ResourceType = ResourceType.SCHOOL_CLASS
    description: str = ""
    # Klassenvorstand, kann auch None sein
    class_teacher: Optional[Teacher] = Field(
        None, validation_alias=AliasChoices("classteacher", "classTeacher", "class_teacher"))

    @field_validator("description", mode="before")
    @classmethod
    def _description_none(cls, v):
        return "" if v is None else v

    @field_validator("class_teacher", mode="before")
    @classmethod
    def _placeholder(cls, v):
        """Rohdaten ohne Kürzel ergeben keinen Platzhalter."""
        if isinstance(v, dict):
            if not v.get("name"):
                return None
            return {"id": -1, **v}
        return v
