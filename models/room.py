"""Datenmodell für einen Raum (Pydantic v2)."""

from pydantic import field_validator

from models.resource import ResourceType, UntisResource


class Room(UntisResource):
    """Angaben zum Raum, sofern sie in Untis eingetragen wurden."""

    type: ResourceType = ResourceType.ROOM
    description: str = ""
    capacity: int = 0

    @field_validator("description", mode="before")
    @classmethod
    def _description_none(cls, v):
        return "" if v is None else v

    @field_validator("capacity", mode="before")
    @classmethod
    def _capacity_none(cls, v):
        return 0 if v is None else v
