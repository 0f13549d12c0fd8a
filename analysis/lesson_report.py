"""Wochenbericht über normalisierte Stunden.

Fasst Stunden nach Klasse und Fach zusammen und listet Lehrausgänge,
Entfälle, Vertretungen und Verschiebungen auf.
"""

from typing import Iterable, Optional

from pydantic import BaseModel

from models.lesson import Lesson, LessonResource, LessonState

UNKNOWN = "???"


# ─── Berichts-Modelle ─────────────────────────────────────────────────────────

class ClassSubjectSummary(BaseModel):
    """Stunden einer Klasse in einem Fach innerhalb der Woche."""

    school_class: Optional[str]   # Kürzel der (ersten) Klasse, None wenn unbekannt
    subject: Optional[str]        # None z.B. bei Lehrausgängen
    count: int
    cancelled: int
    substituted: int


class LessonReport(BaseModel):
    """Vollständiger Wochenbericht."""

    lesson_count: int
    groups: list[ClassSubjectSummary]
    events: list[str]
    cancellations: list[str]
    substitutions: list[str]
    shifts: list[str]

    def print_rich(self) -> None:
        """Gibt den Bericht formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        table = Table(title=f"Stunden nach Klasse und Fach ({self.lesson_count})",
                      box=box.ROUNDED)
        table.add_column("Klasse", style="bold")
        table.add_column("Fach")
        table.add_column("Stunden", justify="right")
        table.add_column("Entfall", justify="right")
        table.add_column("Vertretung", justify="right")
        for g in self.groups:
            table.add_row(g.school_class or "-", g.subject or "-", str(g.count),
                          str(g.cancelled), str(g.substituted))
        console.print(table)

        sections = [
            ("Lehrausgänge", self.events, "cyan"),
            ("Entfälle", self.cancellations, "red"),
            ("Vertretungen", self.substitutions, "yellow"),
            ("Verschiebungen", self.shifts, "magenta"),
        ]
        for title, lines, color in sections:
            body = "\n".join(f"[{color}]• {line}[/{color}]" for line in lines)
            console.print(Panel(body or "[dim]Keine.[/dim]", title=title, border_style=color))


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

def _name(resource) -> Optional[str]:
    return resource.unique_name if resource is not None else None


def _first(resources: tuple[LessonResource, ...], original: bool) -> str:
    if not resources:
        return UNKNOWN
    r = resources[0].original if original else resources[0].current
    return r.unique_name if r is not None else UNKNOWN


def group_by_class_subject(lessons: Iterable[Lesson]) -> list[ClassSubjectSummary]:
    """Gruppiert nach (Klasse, Fach) in der Reihenfolge des ersten Auftretens."""
    groups: dict[tuple, ClassSubjectSummary] = {}
    for lesson in lessons:
        key = (_name(lesson.school_class), _name(lesson.subject))
        summary = groups.get(key)
        if summary is None:
            summary = ClassSubjectSummary(school_class=key[0], subject=key[1],
                                          count=0, cancelled=0, substituted=0)
            groups[key] = summary
        summary.count += 1
        if lesson.state == LessonState.CANCELLED:
            summary.cancelled += 1
        elif lesson.state == LessonState.SUBSTITUTION:
            summary.substituted += 1
    return list(groups.values())


def describe_substitution(lesson: Lesson) -> str:
    """'22.10. 08:00: Statt POS1 mit SZ in C4.07 gibt es DBI1 mit AB in C4.07'."""
    return (
        f"{lesson.begin:%d.%m. %H:%M}: Statt"
        f" {_first(lesson.subjects, True)}"
        f" mit {_first(lesson.teachers, True)}"
        f" in {_first(lesson.rooms, True)}"
        f" gibt es {_first(lesson.subjects, False)}"
        f" mit {_first(lesson.teachers, False)}"
        f" in {_first(lesson.rooms, False)}"
    )


def describe_event(lesson: Lesson) -> str:
    teachers = ", ".join(t.current.long_name or t.current.unique_name
                         for t in lesson.teachers if t.current is not None)
    return (f"{lesson.begin:%d.%m.} von {lesson.begin:%H:%M} bis {lesson.end:%H:%M}"
            f" mit {teachers or UNKNOWN} ({lesson.lesson_text})")


def build_lesson_report(lessons: Iterable[Lesson]) -> LessonReport:
    """Erstellt den Wochenbericht für eine Stundenliste."""
    lessons = list(lessons)
    events, cancellations, substitutions, shifts = [], [], [], []
    for lesson in lessons:
        subject = _name(lesson.subject) or UNKNOWN
        teacher = _name(lesson.teacher) or UNKNOWN
        if lesson.state == LessonState.EVENT:
            events.append(describe_event(lesson))
        elif lesson.state == LessonState.CANCELLED:
            cancellations.append(f"{subject} mit {teacher} um {lesson.begin:%d.%m. %H:%M} fällt aus")
        elif lesson.state == LessonState.SUBSTITUTION:
            substitutions.append(describe_substitution(lesson))
        elif lesson.state == LessonState.SHIFT:
            shifts.append(f"{subject} mit {teacher} findet um {lesson.begin:%d.%m. %H:%M} statt")
    return LessonReport(
        lesson_count=len(lessons),
        groups=group_by_class_subject(lessons),
        events=events,
        cancellations=cancellations,
        substitutions=substitutions,
        shifts=shifts,
    )
