"""UntisClient: Login/Logout und Zugriff auf Stammdaten und Stundenpläne.

Verwendung:
    async with UntisClient("neilo.webuntis.com", "Spengergasse") as client:
        if await client.try_login(user, password):
            classes = await client.classes()
            lessons = await client.get_lessons(classes[0], date(2019, 10, 22))
"""

import logging
from datetime import date
from typing import Optional

import aiohttp
from pydantic import ValidationError

from client.cache import CacheKind, ResourceCache
from client.errors import ProtocolError, RemoteApiError, UntisError
from client.normalizer import LessonNormalizer
from client.transport import DEFAULT_USER_AGENT, UntisTransport
from config.schema import ClientConfig
from models.lesson import Lesson
from models.period import Period
from models.resource import UntisResource
from models.room import Room
from models.school_class import SchoolClass
from models.student import Student
from models.subject import Subject
from models.teacher import Teacher
from models.user import User

logger = logging.getLogger(__name__)


class UntisClient:
    """Client für eine Schule auf einem WebUntis-Server.

    Die Stammdaten (Klassen, Lehrer, Fächer, Räume, Stundenraster) werden pro
    Sitzung beim ersten Zugriff einmal geladen und beim Logout verworfen.
    """

    def __init__(
        self,
        server: str,
        school: str,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_seconds: float = 30.0,
        schoolyear_id: int = 2,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[UntisTransport] = None,
    ) -> None:
        self.transport = transport or UntisTransport(
            server, school, session=session, timeout_seconds=timeout_seconds,
            schoolyear_id=schoolyear_id, user_agent=user_agent,
        )
        self.cache = ResourceCache()
        self._normalizer = LessonNormalizer(self.cache)
        self._current_user: Optional[User] = None

    @classmethod
    def from_config(cls, config: ClientConfig,
                    session: Optional[aiohttp.ClientSession] = None) -> "UntisClient":
        return cls(
            config.server, config.school, session=session,
            timeout_seconds=config.request_timeout_seconds,
            schoolyear_id=config.schoolyear_id,
            user_agent=config.user_agent,
        )

    @property
    def server(self) -> str:
        return self.transport.server

    @property
    def school(self) -> str:
        return self.transport.school

    @property
    def current_user(self) -> Optional[User]:
        return self._current_user

    @property
    def is_logged_in(self) -> bool:
        return self._current_user is not None

    # ─── Sitzung ───

    async def try_login(self, username: str, password: str) -> bool:
        """Meldet sich an. False bei falschen Zugangsdaten, sonst UntisError bei Fehlern."""
        await self.logout()
        try:
            user = await self.transport.authenticate(username, password)
        except RemoteApiError as e:
            if e.is_bad_credentials:
                logger.info(f"Login für '{username}' abgelehnt: {e.message}")
                return False
            raise
        self._current_user = user
        # Ladefunktionen neu setzen, geladen wird erst beim ersten Zugriff
        self.cache.bind(self.transport)
        logger.info(f"Angemeldet als '{username}' an {self.school} ({self.server})")
        return True

    async def logout(self) -> None:
        """Verwirft den Cache und meldet sich ab. Ohne Sitzung passiert nichts."""
        if self._current_user is None:
            return
        self.cache.clear()
        username = self._current_user.username
        self._current_user = None
        try:
            await self.transport.logout()
        except UntisError as e:
            logger.warning(f"Logout von '{username}' fehlgeschlagen: {e}")
            return
        logger.info(f"'{username}' abgemeldet")

    async def close(self) -> None:
        """Meldet sich ab und gibt die HTTP-Session frei."""
        try:
            await self.logout()
        finally:
            await self.transport.close()

    async def __aenter__(self) -> "UntisClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ─── Stammdaten (gecacht) ───

    async def get(self, kind: CacheKind) -> tuple:
        return await self.cache.get(kind)

    async def classes(self) -> tuple[SchoolClass, ...]:
        return await self.cache.get(CacheKind.CLASSES)

    async def teachers(self) -> tuple[Teacher, ...]:
        return await self.cache.get(CacheKind.TEACHERS)

    async def subjects(self) -> tuple[Subject, ...]:
        return await self.cache.get(CacheKind.SUBJECTS)

    async def rooms(self) -> tuple[Room, ...]:
        return await self.cache.get(CacheKind.ROOMS)

    async def periods(self) -> tuple[Period, ...]:
        return await self.cache.get(CacheKind.PERIODS)

    # ─── Abfragen ───

    async def get_lessons(self, resource: Optional[UntisResource],
                          day: Optional[date] = None) -> tuple[Lesson, ...]:
        """Stundenplan der Woche, in der day liegt (Default: heute).

        resource ist eine Klasse oder ein Lehrer; None liefert ein leeres Ergebnis.
        """
        if resource is None:
            return ()
        if not self.is_logged_in:
            logger.debug("get_lessons ohne Sitzung: leeres Ergebnis")
            return ()
        day = day or date.today()
        element_type = int(resource.type)
        payload = await self.transport.fetch_weekly_timetable(
            element_type, resource.internal_id, day)
        return await self._normalizer.normalize(
            payload, element_type, resource.internal_id, day,
            method="timetable/weekly/data",
        )

    async def get_students(self, school_class: Optional[SchoolClass] = None) -> tuple[Student, ...]:
        """Schüler einer Klasse; ohne Klasse alle Schüler (wenn die Berechtigung reicht)."""
        class_id = school_class.internal_id if school_class is not None else None
        rows = await self.transport.fetch_students(class_id)
        try:
            return tuple(Student.model_validate(row) for row in rows)
        except ValidationError as e:
            raise ProtocolError(f"Ungültige Schülerliste: {e}",
                                method="pageconfig type=5") from e
