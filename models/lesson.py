"""Unterrichtsstunde eines Wochenstundenplans (Pydantic v2).

Eine Lesson findet an einem bestimmten Datum statt. Sie wird pro Abfrage neu
erzeugt und danach nicht mehr verändert.
"""

from datetime import date, datetime
from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

from models.period import Period
from models.resource import UntisResource
from models.room import Room
from models.school_class import SchoolClass
from models.subject import Subject
from models.teacher import Teacher

T = TypeVar("T", bound=UntisResource)


class LessonState(str, Enum):
    """Status der Stunde: entfällt, vertreten, verschoben oder Lehrausgang."""
    OTHER = "other"
    STANDARD = "standard"
    CANCELLED = "cancelled"
    SUBSTITUTION = "substitution"
    EVENT = "event"
    SHIFT = "shift"


class LessonResource(BaseModel, Generic[T]):
    """Von der Stunde verwendete Ressource: aktuell eingetragen vs. ursprünglich geplant.

    Ohne Vertretung ist original dieselbe Instanz wie current.
    """

    model_config = ConfigDict(frozen=True)

    current: Optional[T] = None
    original: Optional[T] = None

    @property
    def is_changed(self) -> bool:
        """True wenn die aktuelle Ressource von der geplanten abweicht."""
        return self.current is not self.original


def _first_current(resources: tuple) -> Optional[UntisResource]:
    return resources[0].current if resources else None


def _join_current(resources: tuple) -> str:
    return ",".join(r.current.unique_name if r.current is not None else ""
                    for r in resources)


class Lesson(BaseModel):
    """Eine einzelne Stunde im Stundenplan."""

    model_config = ConfigDict(frozen=True)

    period: Optional[Period] = None     # None, wenn der Beginn nicht im Raster liegt
    student_group: str = ""             # z.B. "AMx_1AHIF"
    lesson_text: str = ""               # Anmerkungen (Lehrausgang, ...)
    period_text: str = ""
    state: LessonState = LessonState.OTHER
    begin: datetime
    end: datetime
    # Eine Stunde kann mehrere Klassen, Lehrer, Fächer und Räume betreffen
    classes: tuple[LessonResource[SchoolClass], ...] = ()
    teachers: tuple[LessonResource[Teacher], ...] = ()
    subjects: tuple[LessonResource[Subject], ...] = ()
    rooms: tuple[LessonResource[Room], ...] = ()

    @property
    def date(self) -> date:
        return self.begin.date()

    @property
    def weekday(self) -> int:
        """Wochentag in der Zählung von WebUntis (1=Sonntag, 2=Montag, ..., 7=Samstag)."""
        return self.begin.isoweekday() % 7 + 1

    @property
    def school_class(self) -> Optional[SchoolClass]:
        """Erste Klasse der Stunde; meist ist ohnehin nur eine eingetragen."""
        return _first_current(self.classes)

    @property
    def teacher(self) -> Optional[Teacher]:
        return _first_current(self.teachers)

    @property
    def subject(self) -> Optional[Subject]:
        return _first_current(self.subjects)

    @property
    def room(self) -> Optional[Room]:
        return _first_current(self.rooms)

    @property
    def classes_string(self) -> str:
        """Aktuell eingetragene Klassen als Beistrichliste."""
        return _join_current(self.classes)

    @property
    def teachers_string(self) -> str:
        return _join_current(self.teachers)

    @property
    def subjects_string(self) -> str:
        return _join_current(self.subjects)

    @property
    def rooms_string(self) -> str:
        return _join_current(self.rooms)
