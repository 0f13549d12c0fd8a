"""WebUntis-Client: Sitzung, Stammdaten-Cache und Stundenplan-Normalisierung."""

from .cache import CacheKind, CacheState, ResourceCache
from .errors import (
    ProtocolError,
    RecordParseError,
    RemoteApiError,
    TimetableFormatError,
    TransportError,
    UntisError,
)
from .normalizer import LessonNormalizer
from .periods import PeriodMatcher, find_period
from .transport import UntisTransport
from .untis_client import UntisClient

__all__ = [
    "CacheKind",
    "CacheState",
    "ResourceCache",
    "UntisError",
    "TransportError",
    "ProtocolError",
    "TimetableFormatError",
    "RemoteApiError",
    "RecordParseError",
    "LessonNormalizer",
    "PeriodMatcher",
    "find_period",
    "UntisTransport",
    "UntisClient",
]
