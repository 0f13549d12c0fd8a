"""Angemeldeter Benutzer (Antwort der JSON-RPC Methode authenticate)."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class User(BaseModel):
    """Sitzungsdaten nach erfolgreichem Login."""

    model_config = ConfigDict(extra="ignore")

    username: str = ""
    # Vom Login zurückgeliefertes JSESSIONID Cookie
    session_id: str = Field(validation_alias=AliasChoices("sessionId", "session_id"))
    # Schüler (5) oder Lehrer (2)
    person_type: int = Field(0, validation_alias=AliasChoices("personType", "person_type"))
    person_id: int = Field(0, validation_alias=AliasChoices("personId", "person_id"))
    # Interne ID der Klasse bei Schülern
    klasse_id: int = Field(0, validation_alias=AliasChoices("klasseId", "klasse_id"))
