"""Sitzungsbezogener Cache für Klassen, Lehrer, Fächer, Räume und Stundenraster.

Jede Sammlung wird beim ersten Zugriff genau einmal geladen (Single-Flight):
gleichzeitige Erstzugriffe hängen sich an denselben laufenden Ladevorgang.
Schlägt das Laden fehl, erhalten alle Wartenden den Fehler; der nächste
Zugriff startet einen neuen Versuch.

Zustände je Sammlung: EMPTY → FETCHING → POPULATED bzw. FETCHING → FAILED.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol

from pydantic import ValidationError

from client.errors import ProtocolError
from models.period import Period
from models.resource import ResourceType
from models.room import Room
from models.school_class import SchoolClass
from models.subject import Subject
from models.teacher import Teacher

logger = logging.getLogger(__name__)


class CacheKind(str, Enum):
    """Im Cache gehaltene Sammlungen."""
    CLASSES = "classes"
    TEACHERS = "teachers"
    SUBJECTS = "subjects"
    ROOMS = "rooms"
    PERIODS = "periods"


# Element-Typ im Stundenplan → Sammlung im Cache
KIND_BY_RESOURCE_TYPE = {
    ResourceType.SCHOOL_CLASS: CacheKind.CLASSES,
    ResourceType.TEACHER: CacheKind.TEACHERS,
    ResourceType.SUBJECT: CacheKind.SUBJECTS,
    ResourceType.ROOM: CacheKind.ROOMS,
}

_MODEL_BY_KIND = {
    CacheKind.CLASSES: (ResourceType.SCHOOL_CLASS, SchoolClass),
    CacheKind.TEACHERS: (ResourceType.TEACHER, Teacher),
    CacheKind.SUBJECTS: (ResourceType.SUBJECT, Subject),
    CacheKind.ROOMS: (ResourceType.ROOM, Room),
}


class ResourceFetcher(Protocol):
    """Was der Cache vom Transport benötigt."""

    async def fetch_resource_list(self, kind: ResourceType) -> list[dict]: ...

    async def fetch_period_grid(self) -> list[dict]: ...


class CacheState(str, Enum):
    EMPTY = "empty"
    FETCHING = "fetching"
    POPULATED = "populated"
    FAILED = "failed"


class CachedCollection:
    """Eine einzelne, einmal geladene Sammlung."""

    def __init__(self, kind: CacheKind, loader: Callable[[], Awaitable[tuple]]) -> None:
        self.kind = kind
        self._loader = loader
        self._task: Optional[asyncio.Future] = None
        self._value: tuple = ()
        self.state = CacheState.EMPTY
        self.fetch_count = 0
        self.detached = False

    async def get(self) -> tuple:
        if self.state is CacheState.POPULATED:
            return self._value
        if self._task is None:
            self.fetch_count += 1
            self.state = CacheState.FETCHING
            logger.debug(f"Cache: lade {self.kind.value} (Versuch {self.fetch_count})")
            self._task = asyncio.ensure_future(self._loader())
            self._task.add_done_callback(self._on_done)
        # shield: ein abgebrochener Aufrufer bricht das gemeinsame Laden nicht ab
        return await asyncio.shield(self._task)

    def _on_done(self, task: asyncio.Future) -> None:
        if task.cancelled():
            self._task = None
            self.state = CacheState.EMPTY
            return
        error = task.exception()
        if error is not None:
            self._task = None
            self.state = CacheState.FAILED
            logger.debug(f"Cache: laden von {self.kind.value} fehlgeschlagen: {error}")
            return
        if self.detached:
            return
        self._value = task.result()
        self.state = CacheState.POPULATED
        self._task = None
        logger.info(f"Cache: {len(self._value)} {self.kind.value} geladen")

    def detach(self) -> None:
        """Verwirft den Inhalt; ein noch laufender Ladevorgang landet nicht mehr hier."""
        self.detached = True
        self._value = ()
        self.state = CacheState.EMPTY


def _parse_rows(kind: CacheKind, rows: list[dict]) -> tuple:
    resource_type, model = _MODEL_BY_KIND[kind]
    try:
        return tuple(model.model_validate(row) for row in rows)
    except (ValidationError, TypeError) as e:
        raise ProtocolError(f"Ungültige {kind.value}-Liste: {e}",
                            method=f"pageconfig type={int(resource_type)}") from e


def resolve_class_teachers(classes: tuple, teachers: tuple) -> tuple:
    """Ersetzt den Klassenvorstand-Platzhalter durch die Lehrkraft mit gleichem Kürzel.

    Ohne Treffer bleibt der Platzhalter unverändert.
    """
    by_name = {}
    for t in teachers:
        by_name.setdefault(t.unique_name, t)
    for school_class in classes:
        placeholder = school_class.class_teacher
        if placeholder is None:
            continue
        teacher = by_name.get(placeholder.unique_name)
        if teacher is not None:
            school_class.class_teacher = teacher
    return classes


class ResourceCache:
    """Hält die Sammlungen einer Sitzung.

    Vor bind() und nach clear() liefert get() für jede Sammlung ein leeres Tupel.
    """

    def __init__(self) -> None:
        self._fetcher: Optional[ResourceFetcher] = None
        self._collections: dict[CacheKind, CachedCollection] = {}

    @property
    def is_bound(self) -> bool:
        return self._fetcher is not None

    def bind(self, fetcher: ResourceFetcher) -> None:
        """Setzt die Ladefunktionen für eine neue Sitzung. Es wird nichts vorab geladen."""
        self.clear()
        self._fetcher = fetcher
        teachers = CachedCollection(
            CacheKind.TEACHERS, lambda: self._load_resources(fetcher, CacheKind.TEACHERS))
        self._collections = {
            CacheKind.CLASSES: CachedCollection(
                CacheKind.CLASSES, lambda: self._load_classes(fetcher, teachers)),
            CacheKind.TEACHERS: teachers,
            CacheKind.SUBJECTS: CachedCollection(
                CacheKind.SUBJECTS, lambda: self._load_resources(fetcher, CacheKind.SUBJECTS)),
            CacheKind.ROOMS: CachedCollection(
                CacheKind.ROOMS, lambda: self._load_resources(fetcher, CacheKind.ROOMS)),
            CacheKind.PERIODS: CachedCollection(
                CacheKind.PERIODS, lambda: self._load_periods(fetcher)),
        }

    def clear(self) -> None:
        """Verwirft alle Sammlungen (synchron)."""
        for collection in self._collections.values():
            collection.detach()
        self._collections = {}
        self._fetcher = None

    def state(self, kind: CacheKind) -> CacheState:
        collection = self._collections.get(kind)
        return collection.state if collection is not None else CacheState.EMPTY

    async def get(self, kind: CacheKind) -> tuple:
        collection = self._collections.get(CacheKind(kind))
        if collection is None:
            return ()
        return await collection.get()

    async def get_many(self, kinds) -> dict[CacheKind, tuple]:
        """Lädt mehrere Sammlungen gleichzeitig."""
        kinds = list(dict.fromkeys(CacheKind(k) for k in kinds))
        results = await asyncio.gather(*(self.get(k) for k in kinds))
        return dict(zip(kinds, results))

    # ─── Ladefunktionen ───

    @staticmethod
    async def _load_resources(fetcher: ResourceFetcher, kind: CacheKind) -> tuple:
        resource_type, _ = _MODEL_BY_KIND[kind]
        rows = await fetcher.fetch_resource_list(resource_type)
        return _parse_rows(kind, rows)

    @staticmethod
    async def _load_periods(fetcher: ResourceFetcher) -> tuple:
        rows = await fetcher.fetch_period_grid()
        try:
            return tuple(Period.from_row(row) for row in rows)
        except (KeyError, TypeError, ValueError) as e:
            raise ProtocolError(f"Ungültiges Stundenraster: {e}", method="timegrid") from e

    @classmethod
    async def _load_classes(cls, fetcher: ResourceFetcher,
                            teachers: CachedCollection) -> tuple:
        # Klassenvorstände werden einmalig beim Befüllen aufgelöst
        classes = await cls._load_resources(fetcher, CacheKind.CLASSES)
        return resolve_class_teachers(classes, await teachers.get())
