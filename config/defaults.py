from config.schema import ClientConfig

# Umgebungsvariable für das Passwort (wird nie in die Config geschrieben)
PASSWORD_ENV_VAR = "UNTIS_PASSWORD"


def default_client_config() -> ClientConfig:
    """Standard-Verbindung: HTL Spengergasse auf neilo.webuntis.com."""
    return ClientConfig(
        server="neilo.webuntis.com",
        school="Spengergasse",
        schoolyear_id=2,
        request_timeout_seconds=30.0,
    )
