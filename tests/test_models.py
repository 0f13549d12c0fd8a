"""Tests für die Datenmodelle (Ressourcen, Stundenraster, Stunden)."""

from datetime import date, datetime, time

import pytest


# ─── GEPACKTE WERTE ───────────────────────────────────────────────────────────

class TestDecoding:
    def test_decode_time(self):
        """845 → 08:45, 1035 → 10:35, 0 → 00:00."""
        from models.period import decode_time
        assert decode_time(845) == time(8, 45)
        assert decode_time(1035) == time(10, 35)
        assert decode_time(0) == time(0, 0)

    def test_decode_time_invalid_minutes(self):
        """Minuten > 59 sind keine gültige Uhrzeit."""
        from models.period import decode_time
        with pytest.raises(ValueError):
            decode_time(875)

    def test_decode_time_rejects_non_int(self):
        from models.period import decode_time
        with pytest.raises(ValueError):
            decode_time("845")
        with pytest.raises(ValueError):
            decode_time(None)
        with pytest.raises(ValueError):
            decode_time(True)

    def test_decode_date(self):
        """20191022 → 22.10.2019."""
        from models.period import decode_date
        assert decode_date(20191022) == date(2019, 10, 22)
        assert decode_date(20200101) == date(2020, 1, 1)

    def test_decode_date_invalid(self):
        from models.period import decode_date
        with pytest.raises(ValueError):
            decode_date(20191322)
        with pytest.raises(ValueError):
            decode_date(None)

    def test_out_of_range_values_raise_value_error(self):
        """Riesige Werte ergeben ValueError statt OverflowError."""
        from models.period import decode_date, decode_time
        with pytest.raises(ValueError):
            decode_time(10**12)
        with pytest.raises(ValueError):
            decode_date(10**15)


# ─── RESSOURCEN ───────────────────────────────────────────────────────────────

class TestResources:
    def test_teacher_from_wire_names(self):
        """Feldnamen des Dienstes werden auf die Modellfelder abgebildet."""
        from models.resource import ResourceType
        from models.teacher import Teacher
        t = Teacher.model_validate(
            {"type": 2, "id": 7, "name": "SZ", "longName": "Schletz",
             "forename": "Martin", "displayname": None, "unbekannt": 1})
        assert t.type == ResourceType.TEACHER
        assert t.internal_id == 7
        assert t.unique_name == "SZ"
        assert t.long_name == "Schletz"
        assert t.fore_name == "Martin"
        assert t.display_name == ""
        assert str(t) == "SZ"

    def test_type_defaults_per_model(self):
        """Ohne type-Feld gilt der Typ der Modellklasse."""
        from models.resource import ResourceType
        from models.room import Room
        from models.subject import Subject
        assert Room.model_validate({"id": 1, "name": "C4.07"}).type == ResourceType.ROOM
        assert Subject.model_validate({"id": 2, "name": "POS1"}).type == ResourceType.SUBJECT

    def test_room_nulls(self):
        """null bei capacity/description ergibt die Defaults."""
        from models.room import Room
        r = Room.model_validate({"id": 31, "name": "B2.14", "capacity": None,
                                 "description": None})
        assert r.capacity == 0
        assert r.description == ""

    def test_school_class_placeholder(self):
        """Klassenvorstand ist zunächst ein Platzhalter mit id -1."""
        from models.school_class import SchoolClass
        sc = SchoolClass.model_validate(
            {"id": 100, "name": "4BHIF", "classteacher": {"name": "SZ", "longName": "Schletz"}})
        assert sc.class_teacher is not None
        assert sc.class_teacher.unique_name == "SZ"
        assert sc.class_teacher.internal_id == -1

    def test_school_class_without_teacher(self):
        from models.school_class import SchoolClass
        assert SchoolClass.model_validate({"id": 1, "name": "1A"}).class_teacher is None
        sc = SchoolClass.model_validate({"id": 1, "name": "1A", "classteacher": {"name": ""}})
        assert sc.class_teacher is None

    def test_student(self):
        from models.student import Student
        s = Student.model_validate({"id": 900, "name": "MuellerMax", "longName": "Müller",
                                    "forename": "Max", "klasseId": 100})
        assert s.school_class_id == 100
        assert s.fore_name == "Max"

    def test_user_from_login_result(self):
        from models.user import User
        u = User.model_validate({"sessionId": "ABC", "personType": 5, "personId": 900,
                                 "klasseId": 100, "username": "schueler"})
        assert u.session_id == "ABC"
        assert u.person_type == 5
        assert u.klasse_id == 100


# ─── STUNDENRASTER ────────────────────────────────────────────────────────────

class TestPeriod:
    def test_from_row(self):
        from models.period import Period
        p = Period.from_row({"period": 2, "startTime": 845, "endTime": 935})
        assert p.nr == 2
        assert p.start_time == time(8, 45)
        assert p.end_time == time(9, 35)
        assert str(p) == "2"

    def test_from_row_missing_field(self):
        from models.period import Period
        with pytest.raises(KeyError):
            Period.from_row({"period": 2, "startTime": 845})


# ─── STUNDEN ──────────────────────────────────────────────────────────────────

def _make_lesson(**kwargs):
    from models.lesson import Lesson, LessonResource, LessonState
    from models.room import Room
    from models.school_class import SchoolClass
    from models.subject import Subject
    from models.teacher import Teacher

    ab = Teacher.model_validate({"id": 5, "name": "AB"})
    sz = Teacher.model_validate({"id": 7, "name": "SZ"})
    defaults = dict(
        begin=datetime(2019, 10, 22, 8, 45),
        end=datetime(2019, 10, 22, 9, 35),
        state=LessonState.SUBSTITUTION,
        classes=(LessonResource[SchoolClass](
            current=SchoolClass.model_validate({"id": 100, "name": "4BHIF"})),),
        teachers=(LessonResource[Teacher](current=ab, original=sz),
                  LessonResource[Teacher](current=None, original=None),
                  LessonResource[Teacher](current=sz, original=sz)),
        subjects=(LessonResource[Subject](
            current=Subject.model_validate({"id": 20, "name": "POS1"})),),
        rooms=(),
    )
    defaults.update(kwargs)
    return Lesson(**defaults)


class TestLesson:
    def test_date_and_weekday(self):
        """22.10.2019 ist ein Dienstag → 3 (1=Sonntag)."""
        lesson = _make_lesson()
        assert lesson.date == date(2019, 10, 22)
        assert lesson.weekday == 3

    def test_weekday_sunday_and_saturday(self):
        sunday = _make_lesson(begin=datetime(2019, 10, 20, 8, 0),
                              end=datetime(2019, 10, 20, 8, 50))
        saturday = _make_lesson(begin=datetime(2019, 10, 26, 8, 0),
                                end=datetime(2019, 10, 26, 8, 50))
        assert sunday.weekday == 1
        assert saturday.weekday == 7

    def test_first_resource_accessors(self):
        lesson = _make_lesson()
        assert lesson.school_class.unique_name == "4BHIF"
        assert lesson.teacher.unique_name == "AB"
        assert lesson.subject.unique_name == "POS1"
        assert lesson.room is None

    def test_strings_keep_unresolved_entries_empty(self):
        """Nicht aufgelöste Einträge erscheinen als leerer Eintrag in der Liste."""
        lesson = _make_lesson()
        assert lesson.teachers_string == "AB,,SZ"
        assert lesson.classes_string == "4BHIF"
        assert lesson.rooms_string == ""

    def test_is_changed(self):
        lesson = _make_lesson()
        assert lesson.teachers[0].is_changed
        assert not lesson.teachers[2].is_changed

    def test_lesson_is_frozen(self):
        from pydantic import ValidationError
        lesson = _make_lesson()
        with pytest.raises(ValidationError):
            lesson.lesson_text = "geändert"
