"""Tests für Stundenraster-Zuordnung und die Normalisierung der Wochendaten."""

import asyncio
import logging
from datetime import date, datetime, time

import pytest

from untis_fakes import FakeFetcher, make_payload, make_record

DAY = date(2019, 10, 22)


def _make_normalizer(fetcher=None):
    from client.cache import ResourceCache
    from client.normalizer import LessonNormalizer
    cache = ResourceCache()
    cache.bind(fetcher or FakeFetcher())
    return LessonNormalizer(cache)


def _normalize(records, fetcher=None, element_id=100):
    normalizer = _make_normalizer(fetcher)
    return asyncio.run(normalizer.normalize(make_payload(records, element_id),
                                            1, element_id, DAY))


# ─── STUNDENRASTER ────────────────────────────────────────────────────────────

class TestPeriodMatcher:
    def test_exact_match(self):
        from client.cache import ResourceCache
        from client.periods import PeriodMatcher
        cache = ResourceCache()
        cache.bind(FakeFetcher())
        matcher = PeriodMatcher(cache)
        assert asyncio.run(matcher.match(845)).nr == 2
        assert asyncio.run(matcher.match(800)).nr == 1

    def test_no_rounding(self):
        """846 liegt nicht im Raster → None, nicht die nächste Stunde."""
        from client.cache import ResourceCache
        from client.periods import PeriodMatcher
        cache = ResourceCache()
        cache.bind(FakeFetcher())
        assert asyncio.run(PeriodMatcher(cache).match(846)) is None

    def test_find_period_empty_grid(self):
        from client.periods import find_period
        assert find_period((), time(8, 0)) is None

    def test_lesson_outside_grid_has_no_period(self):
        lessons = _normalize([make_record(start=846, end=930)])
        assert len(lessons) == 1
        assert lessons[0].period is None
        assert lessons[0].begin == datetime(2019, 10, 22, 8, 46)


# ─── STATUS ───────────────────────────────────────────────────────────────────

class TestDeriveState:
    @pytest.mark.parametrize("flags, expected", [
        ({"substitution": True, "cancelled": True}, "substitution"),
        ({"event": True, "cancelled": True}, "event"),
        ({"event": True, "substitution": True}, "event"),
        ({"shift": True, "standard": True}, "shift"),
        ({"standard": True, "cancelled": True}, "standard"),
        ({"cancelled": True}, "cancelled"),
        ({"standard": True}, "standard"),
        ({}, "other"),
        ({"cancelled": False, "roomSubstitution": True}, "other"),
    ])
    def test_priority(self, flags, expected):
        from client.normalizer import derive_state
        assert derive_state(flags).value == expected

    def test_state_in_lesson(self):
        from models.lesson import LessonState
        lessons = _normalize([make_record(flags={"substitution": True, "cancelled": True})])
        assert lessons[0].state == LessonState.SUBSTITUTION


# ─── RESSOURCEN AUFLÖSEN ──────────────────────────────────────────────────────

class TestResolution:
    def test_standard_lesson(self):
        lessons = _normalize([make_record()])
        lesson = lessons[0]
        assert lesson.period.nr == 2
        assert lesson.begin == datetime(2019, 10, 22, 8, 45)
        assert lesson.end == datetime(2019, 10, 22, 9, 35)
        assert lesson.school_class.unique_name == "4BHIF"
        assert lesson.teacher.unique_name == "AB"
        assert lesson.subject.unique_name == "POS1"
        assert lesson.room.unique_name == "C4.07"
        assert lesson.student_group == "POS1_4BHIF"

    def test_without_org_id_original_is_current(self):
        lesson = _normalize([make_record()])[0]
        assert lesson.teachers[0].original is lesson.teachers[0].current
        assert not lesson.teachers[0].is_changed

    def test_org_id_gives_original(self):
        """AB vertritt SZ."""
        lesson = _normalize([make_record(
            flags={"substitution": True},
            elements=[{"type": 2, "id": 5, "orgId": 7}])])[0]
        assert lesson.teachers[0].current.unique_name == "AB"
        assert lesson.teachers[0].original.unique_name == "SZ"
        assert lesson.teachers[0].is_changed

    def test_unresolvable_org_id_falls_back_to_current(self):
        lesson = _normalize([make_record(elements=[{"type": 4, "id": 30, "orgId": 999}])])[0]
        assert lesson.rooms[0].original is lesson.rooms[0].current

    def test_unknown_id_stays_unresolved(self):
        """Unbekannte IDs ergeben None, die Stunde bleibt erhalten."""
        lesson = _normalize([make_record(elements=[
            {"type": 2, "id": 999}, {"type": 3, "id": 20}])])[0]
        assert lesson.teachers[0].current is None
        assert lesson.teachers[0].original is None
        assert lesson.teacher is None
        assert lesson.subject.unique_name == "POS1"

    def test_resolved_resource_is_cached_instance(self):
        from client.cache import CacheKind
        fetcher = FakeFetcher()
        normalizer = _make_normalizer(fetcher)

        async def scenario():
            lessons = await normalizer.normalize(make_payload([make_record()]), 1, 100, DAY)
            teachers = await normalizer._cache.get(CacheKind.TEACHERS)
            return lessons, teachers

        lessons, teachers = asyncio.run(scenario())
        assert lessons[0].teacher is teachers[0]

    def test_co_teaching(self):
        lesson = _normalize([make_record(elements=[
            {"type": 2, "id": 5}, {"type": 2, "id": 7}, {"type": 1, "id": 100},
            {"type": 1, "id": 101}])])[0]
        assert lesson.teachers_string == "AB,SZ"
        assert lesson.classes_string == "4BHIF,4AHIF"

    def test_other_element_types_are_ignored(self):
        """Typ 5 (Schüler) wird nicht aufgelöst und nicht geladen."""
        fetcher = FakeFetcher()
        lesson = _normalize([make_record(elements=[{"type": 5, "id": 900},
                                                   {"type": 3, "id": 21}])], fetcher)[0]
        assert lesson.subjects_string == "DBI1"
        assert lesson.teachers == ()
        assert fetcher.calls[5] == 0

    def test_non_integer_element_type_is_ignored(self):
        """type 2.0 oder true gilt nicht als Lehrer bzw. Klasse."""
        fetcher = FakeFetcher()
        lesson = _normalize([make_record(elements=[
            {"type": 2.0, "id": 5}, {"type": True, "id": 100}, {"type": 3, "id": 20}])],
            fetcher)[0]
        assert lesson.teachers == ()
        assert lesson.classes == ()
        assert lesson.subjects_string == "POS1"

    def test_element_kind(self):
        from client.cache import CacheKind
        from client.normalizer import element_kind
        assert element_kind(2) is CacheKind.TEACHERS
        assert element_kind(2.0) is None
        assert element_kind(True) is None
        assert element_kind("2") is None
        assert element_kind(5) is None

    def test_only_referenced_kinds_are_loaded(self):
        from models.resource import ResourceType
        fetcher = FakeFetcher()
        _normalize([make_record(elements=[{"type": 4, "id": 31}])], fetcher)
        assert fetcher.calls[ResourceType.ROOM] == 1
        assert fetcher.calls["periods"] == 1
        assert fetcher.calls[ResourceType.TEACHER] == 0
        assert fetcher.calls[ResourceType.SUBJECT] == 0

    def test_texts(self):
        lesson = _normalize([make_record(flags={"event": True},
                                         lessonText="Lehrausgang Technisches Museum",
                                         periodText=None)])[0]
        assert lesson.lesson_text == "Lehrausgang Technisches Museum"
        assert lesson.period_text == ""


# ─── FEHLERHAFTE DATEN ────────────────────────────────────────────────────────

class TestMalformedRecords:
    def test_bad_record_is_skipped(self, caplog):
        """10 Stunden, die 4. ohne Datum → 9 Stunden in Originalreihenfolge."""
        records = [make_record(lessonText=f"Stunde {i}") for i in range(10)]
        del records[3]["date"]
        with caplog.at_level(logging.WARNING, logger="client.normalizer"):
            lessons = _normalize(records)
        assert len(lessons) == 9
        assert [l.lesson_text for l in lessons] == [
            f"Stunde {i}" for i in range(10) if i != 3]
        assert "#3" in caplog.text

    @pytest.mark.parametrize("broken", [
        {"date": "20191022"},
        {"startTime": None},
        {"is": None},
        {"elements": [{"id": 5}]},
        {"date": 20191322},
        {"date": 10**15},
        {"startTime": 10**12},
        {"endTime": 10**12},
    ])
    def test_various_bad_records(self, broken):
        records = [make_record(), make_record(**broken), make_record(start=945, end=1035)]
        lessons = _normalize(records)
        assert [l.period.nr for l in lessons] == [2, 3]

    def test_non_dict_record_is_skipped(self):
        lessons = _normalize([make_record(), "kaputt", None])
        assert len(lessons) == 1

    def test_missing_element_periods(self):
        from client.errors import ProtocolError, TimetableFormatError
        normalizer = _make_normalizer()
        with pytest.raises(TimetableFormatError) as exc:
            asyncio.run(normalizer.normalize({"result": {"data": {}}}, 1, 100, DAY,
                                             method="timetable/weekly/data"))
        err = exc.value
        assert isinstance(err, ProtocolError)
        assert err.element_id == 100
        assert err.element_type == 1
        assert err.query_date == DAY
        assert err.method == "timetable/weekly/data"
        assert "elementId=100" in str(err)
        assert "2019-10-22" in str(err)

    @pytest.mark.parametrize("payload", [
        None,
        {},
        {"result": None},
        {"result": {"data": {"elementPeriods": []}}},
        {"result": {"data": {"elementPeriods": {"100": "keine Liste"}}}},
    ])
    def test_malformed_payloads(self, payload):
        from client.errors import TimetableFormatError
        normalizer = _make_normalizer()
        with pytest.raises(TimetableFormatError):
            asyncio.run(normalizer.normalize(payload, 2, 7, DAY))

    def test_empty_element_periods(self):
        normalizer = _make_normalizer()
        payload = {"result": {"data": {"elementPeriods": {}}}}
        assert asyncio.run(normalizer.normalize(payload, 1, 100, DAY)) == ()

    def test_other_element_key_is_used(self):
        """Fehlt der Schlüssel der abgefragten ID, gilt der erste Eintrag."""
        normalizer = _make_normalizer()
        payload = make_payload([make_record()], element_id=555)
        lessons = asyncio.run(normalizer.normalize(payload, 1, 100, DAY))
        assert len(lessons) == 1

    def test_fetch_error_propagates(self):
        """Fehler beim Laden der Stammdaten sind kein Formatfehler."""
        from client.errors import TimetableFormatError, TransportError
        from models.resource import ResourceType
        fetcher = FakeFetcher()
        fetcher.fail[ResourceType.TEACHER] = TransportError("HTTP-Status 502")
        with pytest.raises(TransportError) as exc:
            _normalize([make_record()], fetcher)
        assert not isinstance(exc.value, TimetableFormatError)


# ─── NEBENLÄUFIGKEIT ──────────────────────────────────────────────────────────

class TestConcurrentNormalize:
    def test_parallel_queries_share_fetches(self):
        from models.resource import ResourceType
        fetcher = FakeFetcher()
        normalizer = _make_normalizer(fetcher)

        async def scenario():
            return await asyncio.gather(*(
                normalizer.normalize(make_payload([make_record()], element_id=i), 1, i, DAY)
                for i in (100, 101, 102)))

        results = asyncio.run(scenario())
        assert all(len(r) == 1 for r in results)
        for kind in (ResourceType.SCHOOL_CLASS, ResourceType.TEACHER,
                     ResourceType.SUBJECT, ResourceType.ROOM):
            assert fetcher.calls[kind] == 1
        assert fetcher.calls["periods"] == 1
