"""Zuordnung einer Beginnzeit (HHMM) zur Stunde im Stundenraster."""

from datetime import time
from typing import Iterable, Optional, TYPE_CHECKING

from client.cache import CacheKind
from models.period import Period, decode_time

if TYPE_CHECKING:
    from client.cache import ResourceCache


def find_period(periods: Iterable[Period], start_time: time) -> Optional[Period]:
    """Stunde mit exakt dieser Beginnzeit, sonst None (kein Runden auf den nächsten Slot)."""
    return next((p for p in periods if p.start_time == start_time), None)


class PeriodMatcher:
    """Löst gepackte Beginnzeiten gegen das gecachte Stundenraster auf."""

    def __init__(self, cache: "ResourceCache") -> None:
        self._cache = cache

    async def match(self, raw_start: int) -> Optional[Period]:
        """845 → Stunde mit Beginn 08:45 oder None."""
        periods = await self._cache.get(CacheKind.PERIODS)
        return find_period(periods, decode_time(raw_start))
