"""Stundenraster: eine Unterrichtsstunde im Tagesraster der Schule."""

from datetime import date, time

from pydantic import BaseModel, ConfigDict


def decode_time(hhmm: int) -> time:
    """Wandelt die gepackte Uhrzeit HHMM (z.B. 845) in eine Tageszeit (08:45) um."""
    if isinstance(hhmm, bool) or not isinstance(hhmm, int):
        raise ValueError(f"Ungültige Uhrzeit: {hhmm!r}")
    try:
        return time(hhmm // 100, hhmm % 100)
    except OverflowError as e:
        raise ValueError(f"Ungültige Uhrzeit: {hhmm!r}") from e


def decode_date(yyyymmdd: int) -> date:
    """Wandelt das gepackte Datum YYYYMMDD (z.B. 20191022) in ein date um."""
    if isinstance(yyyymmdd, bool) or not isinstance(yyyymmdd, int):
        raise ValueError(f"Ungültiges Datum: {yyyymmdd!r}")
    try:
        return date(yyyymmdd // 10000, yyyymmdd // 100 % 100, yyyymmdd % 100)
    except OverflowError as e:
        raise ValueError(f"Ungültiges Datum: {yyyymmdd!r}") from e


class Period(BaseModel):
    """Zeitpunkt einer Unterrichtsstunde. Innerhalb einer Sitzung unveränderlich."""

    model_config = ConfigDict(frozen=True)

    nr: int            # 1-basiert (1. Stunde, 2. Stunde, ...)
    start_time: time
    end_time: time

    @classmethod
    def from_row(cls, row: dict) -> "Period":
        """Erzeugt eine Periode aus einer Zeile von timegrid (period, startTime, endTime)."""
        return cls(
            nr=row["period"],
            start_time=decode_time(row["startTime"]),
            end_time=decode_time(row["endTime"]),
        )

    def __str__(self) -> str:
        return str(self.nr)
