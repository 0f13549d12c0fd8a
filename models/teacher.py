"""Datenmodell für eine Lehrkraft (Pydantic v2)."""

from typing import Optional

from pydantic import AliasChoices, Field

from models.resource import ResourceType, UntisResource


class Teacher(UntisResource):
    """Repräsentiert eine Lehrkraft. Kürzel in unique_name, Zuname in long_name."""

    type: ResourceType = ResourceType.TEACHER
    fore_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("forename", "foreName", "fore_name"))
