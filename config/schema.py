from pydantic import BaseModel, Field, field_validator
from typing import Optional

DEFAULT_USER_AGENT = "webuntis-client/1.0"


# ─── VERBINDUNG ───

class ClientConfig(BaseModel):
    """Verbindungsdaten für einen WebUntis-Server.

    Das Passwort wird NICHT gespeichert.
    """
    # Anmeldeserver, z.B. "neilo.webuntis.com"
    server: str = Field("neilo.webuntis.com",
        description="Anmeldeserver (ohne https://)")
    # Schulname in WebUntis, z.B. "Spengergasse"
    school: str = Field("Spengergasse",
        description="Schulname in WebUntis")
    # Optionaler Standard-Benutzername für die CLI
    username: Optional[str] = Field(None,
        description="Benutzername (optional)")
    # Schuljahr-ID für das Stundenraster (timegrid?schoolyearId=...)
    schoolyear_id: int = Field(2, ge=1,
        description="Schuljahr-ID für das Stundenraster")
    # Gesamt-Timeout pro HTTP-Request in Sekunden
    request_timeout_seconds: float = Field(30.0, ge=1.0, le=300.0,
        description="Timeout pro Request (Sekunden)")
    # User-Agent-Header
    user_agent: str = Field(DEFAULT_USER_AGENT,
        description="User-Agent für HTTP-Requests")

    @field_validator("server")
    @classmethod
    def normalize_server(cls, v: str) -> str:
        """'https://neilo.webuntis.com/' → 'neilo.webuntis.com'."""
        v = v.strip()
        for prefix in ("https://", "http://"):
            if v.lower().startswith(prefix):
                v = v[len(prefix):]
        v = v.rstrip("/")
        if not v:
            raise ValueError("Server darf nicht leer sein")
        return v

    @field_validator("school")
    @classmethod
    def school_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Schulname darf nicht leer sein")
        return v
