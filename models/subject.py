"""Datenmodell für ein Unterrichtsfach (Pydantic v2)."""

from models.resource import ResourceType, UntisResource


class Subject(UntisResource):
    """Repräsentiert ein Unterrichtsfach (z.B. "POS1", "BAP")."""

    type: ResourceType = ResourceType.SUBJECT
