"""HTTP-Zugriff auf WebUntis (aiohttp).

Zwei Schnittstellen:
- JSON-RPC (https://{server}/WebUntis/jsonrpc.do?school=...), nur für Login und Logout.
- Öffentliche Web-API (https://{server}/WebUntis/api/public/...), liefert {"data": ...}.

Das Session-Cookie aus dem Login wird im Cookie-Jar der aiohttp-Session
gehalten und bei allen weiteren Anfragen mitgesendet.
"""

import asyncio
import itertools
import json
import logging
import uuid
from datetime import date
from typing import Any, Optional
from urllib.parse import urlencode

import aiohttp
from pydantic import ValidationError

from client.errors import ProtocolError, RemoteApiError, TransportError
from config.schema import DEFAULT_USER_AGENT
from models.resource import ResourceType
from models.user import User

logger = logging.getLogger(__name__)


def _operation(page: str, params: Optional[dict] = None) -> str:
    """Name der Operation für Fehlermeldungen, z.B. 'timegrid?schoolyearId=2'."""
    return f"{page}?{urlencode(params)}" if params else page


def _require(container: Any, key: str, operation: str) -> Any:
    if not isinstance(container, dict) or key not in container:
        raise ProtocolError(f"Antwort enthält kein Feld '{key}'.", method=operation)
    return container[key]


def _require_list(container: Any, key: str, operation: str) -> list:
    value = _require(container, key, operation)
    if not isinstance(value, list):
        raise ProtocolError(f"Feld '{key}' ist keine Liste.", method=operation)
    return value


def _raise_remote_error(envelope: dict, operation: str) -> None:
    error = envelope.get("error")
    if error is None:
        return
    if isinstance(error, dict):
        raise RemoteApiError(str(error.get("message", "")), method=operation,
                             error_code=error.get("code"))
    raise RemoteApiError(str(error), method=operation)


class UntisTransport:
    """Sendet Anfragen an einen WebUntis-Server für eine bestimmte Schule."""

    def __init__(
        self,
        server: str,
        school: str,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_seconds: float = 30.0,
        schoolyear_id: int = 2,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.server = server
        self.school = school
        self.schoolyear_id = schoolyear_id
        self.api_url = f"https://{server}/WebUntis/jsonrpc.do"
        self.web_api_url = f"https://{server}/WebUntis/api/public"
        # Zufällige Client-ID für die JSON-RPC API
        self.client_id = uuid.uuid4().hex
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._user_agent = user_agent
        self._request_ids = itertools.count(1)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={"User-Agent": self._user_agent},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Schließt die HTTP-Session, sofern sie hier erzeugt wurde."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _read_json(self, operation: str, request) -> Any:
        """Führt den Request aus und liefert das geparste JSON-Dokument."""
        try:
            async with request as resp:
                if resp.status >= 400:
                    raise TransportError(f"HTTP-Status {resp.status}", method=operation)
                text = await resp.text()
        except aiohttp.ClientError as e:
            raise TransportError(str(e) or type(e).__name__, method=operation) from e
        except asyncio.TimeoutError as e:
            raise TransportError("Zeitüberschreitung beim Request.", method=operation) from e
        try:
            return json.loads(text)
        except ValueError as e:
            raise TransportError("Antwort ist kein gültiges JSON.", method=operation) from e

    # ─── JSON-RPC ───

    async def call_rpc(self, method: str, params: Optional[dict] = None) -> Any:
        """Sendet {"id", "method", "params", "jsonrpc": "2.0"} und liefert result."""
        body = {
            "jsonrpc": "2.0",
            "id": str(next(self._request_ids)),
            "method": method,
            "params": params or {},
        }
        session = self._get_session()
        envelope = await self._read_json(
            method, session.post(self.api_url, params={"school": self.school}, json=body)
        )
        if not isinstance(envelope, dict):
            raise ProtocolError("Antwort ist kein JSON-Objekt.", method=method)
        _raise_remote_error(envelope, method)
        return _require(envelope, "result", method)

    async def authenticate(self, username: str, password: str) -> User:
        result = await self.call_rpc(
            "authenticate",
            {"user": username, "password": password, "client": self.client_id},
        )
        if not isinstance(result, dict):
            raise ProtocolError("Ungültige Login-Antwort.", method="authenticate")
        try:
            return User.model_validate({**result, "username": username})
        except ValidationError as e:
            raise ProtocolError(f"Ungültige Login-Antwort: {e}", method="authenticate") from e

    async def logout(self) -> None:
        await self.call_rpc("logout")

    # ─── Web-API ───

    async def get_data(self, page: str, params: Optional[dict] = None) -> Any:
        """GET auf die Web-API; liefert das data-Property der Antwort."""
        operation = _operation(page, params)
        session = self._get_session()
        envelope = await self._read_json(
            operation, session.get(f"{self.web_api_url}/{page}", params=params)
        )
        if isinstance(envelope, dict):
            _raise_remote_error(envelope, operation)
        return _require(envelope, "data", operation)

    async def fetch_resource_list(self, kind: ResourceType) -> list[dict]:
        """Klassen, Lehrer, Fächer oder Räume (pageconfig liefert data/elements)."""
        params = {"type": str(int(kind))}
        data = await self.get_data("timetable/weekly/pageconfig", params)
        elements = _require_list(data, "elements", _operation("timetable/weekly/pageconfig", params))
        logger.debug(f"{kind.name}: {len(elements)} Einträge geladen")
        return list(elements)

    async def fetch_period_grid(self) -> list[dict]:
        """Stundenraster (timegrid liefert data/rows)."""
        params = {"schoolyearId": str(self.schoolyear_id)}
        data = await self.get_data("timegrid", params)
        return list(_require_list(data, "rows", _operation("timegrid", params)))

    async def fetch_weekly_timetable(self, element_type: int, element_id: int,
                                     day: date) -> Any:
        """Rohdaten des Wochenstundenplans einer Klasse (1) oder eines Lehrers (2)."""
        params = {
            "elementType": str(element_type),
            "elementId": str(element_id),
            "date": day.isoformat(),
        }
        return await self.get_data("timetable/weekly/data", params)

    async def fetch_students(self, school_class_id: Optional[int] = None) -> list[dict]:
        """Schüler einer Klasse oder alle Schüler (sofern berechtigt)."""
        params = {"type": str(int(ResourceType.STUDENT))}
        if school_class_id is not None:
            params["filter.klasseOrStudentgroupId"] = f"KL{school_class_id}"
        data = await self.get_data("timetable/weekly/pageconfig", params)
        return list(_require_list(data, "elements", _operation("timetable/weekly/pageconfig", params)))
