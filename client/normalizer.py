"""Wandelt die Rohdaten eines Wochenstundenplans in Lesson-Objekte um.

Aufbau der Rohdaten (data-Property von timetable/weekly/data):
  result.data.elementPeriods.<elementId> = [
      {"date": 20191022, "startTime": 845, "endTime": 935,
       "is": {"standard": true, ...}, "lessonText": "", "periodText": "",
       "studentGroup": "...", "elements": [{"type": 2, "id": 5, "orgId": 7}, ...]},
      ...
  ]

Eine fehlerhafte Stunde wird übersprungen; eine Antwort ohne diese Struktur
führt zu TimetableFormatError.
"""

import logging
from datetime import date, datetime
from typing import Any, Optional

from pydantic import ValidationError

from client.cache import KIND_BY_RESOURCE_TYPE, CacheKind, ResourceCache
from client.errors import RecordParseError, TimetableFormatError
from client.periods import PeriodMatcher
from models.lesson import Lesson, LessonResource, LessonState
from models.period import decode_date, decode_time
from models.room import Room
from models.school_class import SchoolClass
from models.subject import Subject
from models.teacher import Teacher

logger = logging.getLogger(__name__)

# Reihenfolge ist eine Geschäftsregel: das erste gesetzte Flag gewinnt.
# "standard" steht vor "cancelled", d.h. standard+cancelled ergibt STANDARD.
STATE_PRIORITY = (
    ("event", LessonState.EVENT),
    ("substitution", LessonState.SUBSTITUTION),
    ("shift", LessonState.SHIFT),
    ("standard", LessonState.STANDARD),
    ("cancelled", LessonState.CANCELLED),
)

_RESOURCE_MODELS = {
    CacheKind.CLASSES: SchoolClass,
    CacheKind.TEACHERS: Teacher,
    CacheKind.SUBJECTS: Subject,
    CacheKind.ROOMS: Room,
}

_MISSING_ID = -1


def derive_state(flags: dict) -> LessonState:
    """Status der Stunde aus den is-Flags."""
    for flag, state in STATE_PRIORITY:
        if flags.get(flag, False):
            return state
    return LessonState.OTHER


def extract_records(payload: Any, element_id: int) -> list:
    """Liefert die Liste der Stunden aus result.data.elementPeriods."""
    element_periods = payload["result"]["data"]["elementPeriods"]
    if not isinstance(element_periods, dict):
        raise TypeError("elementPeriods ist kein Objekt")
    if not element_periods:
        return []
    records = element_periods.get(str(element_id))
    if records is None:
        records = next(iter(element_periods.values()))
    if not isinstance(records, list):
        raise TypeError("elementPeriods enthält keine Liste")
    return records


def element_kind(raw_type: Any) -> Optional[CacheKind]:
    """Sammlung zum Element-Typ; None für unbekannte oder nicht ganzzahlige Typen."""
    if isinstance(raw_type, bool) or not isinstance(raw_type, int):
        return None
    return KIND_BY_RESOURCE_TYPE.get(raw_type)


def referenced_kinds(records: list) -> set[CacheKind]:
    """Sammlungen, die zum Auflösen der Stunden benötigt werden."""
    kinds = set()
    for record in records:
        elements = record.get("elements") if isinstance(record, dict) else None
        if not isinstance(elements, list):
            continue
        for element in elements:
            kind = element_kind(element.get("type")) if isinstance(element, dict) else None
            if kind is not None:
                kinds.add(kind)
    return kinds


def _index_by_id(resources: tuple) -> dict:
    index = {}
    for r in resources:
        index.setdefault(r.internal_id, r)
    return index


class LessonNormalizer:
    """Erzeugt Lessons und löst dabei die Ressourcen über den Cache auf."""

    def __init__(self, cache: ResourceCache) -> None:
        self._cache = cache
        self._periods = PeriodMatcher(cache)

    async def normalize(self, payload: Any, element_type: int, element_id: int,
                        day: date, method: Optional[str] = None) -> tuple[Lesson, ...]:
        try:
            records = extract_records(payload, element_id)
        except (KeyError, TypeError, IndexError) as e:
            raise TimetableFormatError(
                f"Ungültige Stundenplandaten: {e!r}",
                element_type=element_type, element_id=element_id,
                query_date=day, method=method,
            ) from e

        # Benötigte Sammlungen gleichzeitig laden; Fehler gehen unverändert an den Aufrufer
        kinds = referenced_kinds(records) | {CacheKind.PERIODS}
        loaded = await self._cache.get_many(kinds)
        lookups = {kind: _index_by_id(items) for kind, items in loaded.items()
                   if kind is not CacheKind.PERIODS}

        lessons = []
        for index, record in enumerate(records):
            try:
                lessons.append(await self._build_lesson(record, lookups))
            except RecordParseError as e:
                logger.warning(f"Stunde #{index} übersprungen: {e}")
        logger.debug(f"{len(lessons)} von {len(records)} Stunden übernommen")
        return tuple(lessons)

    async def _build_lesson(self, record: Any, lookups: dict) -> Lesson:
        try:
            day = decode_date(record["date"])
            begin = datetime.combine(day, decode_time(record["startTime"]))
            end = datetime.combine(day, decode_time(record["endTime"]))
            period = await self._periods.match(record["startTime"])
            state = derive_state(record["is"])

            resolved = {kind: [] for kind in _RESOURCE_MODELS}
            for element in record["elements"]:
                kind = element_kind(element["type"])
                if kind is None:
                    continue
                resolved[kind].append(self._resolve(kind, element, lookups.get(kind, {})))

            return Lesson(
                period=period,
                student_group=record.get("studentGroup") or "",
                lesson_text=record.get("lessonText") or "",
                period_text=record.get("periodText") or "",
                state=state,
                begin=begin,
                end=end,
                classes=tuple(resolved[CacheKind.CLASSES]),
                teachers=tuple(resolved[CacheKind.TEACHERS]),
                subjects=tuple(resolved[CacheKind.SUBJECTS]),
                rooms=tuple(resolved[CacheKind.ROOMS]),
            )
        except (KeyError, TypeError, ValueError, AttributeError, ValidationError) as e:
            raise RecordParseError(f"Fehlerhafte Stunde: {e!r}") from e

    @staticmethod
    def _resolve(kind: CacheKind, element: dict, lookup: dict) -> LessonResource:
        """current über id, original über orgId; ohne (auflösbare) orgId gilt current."""
        current = lookup.get(element.get("id", _MISSING_ID))
        original = lookup.get(element.get("orgId", _MISSING_ID))
        if original is None:
            original = current
        return LessonResource[_RESOURCE_MODELS[kind]](current=current, original=original)
