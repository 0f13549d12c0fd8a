from models.resource import ResourceType, UntisResource
from models.teacher import Teacher
from models.school_class import SchoolClass
from models.subject import Subject
from models.room import Room
from models.student import Student
from models.period import Period
from models.lesson import Lesson, LessonResource, LessonState
from models.user import User

__all__ = [
    "ResourceType",
    "UntisResource",
    "Teacher",
    "SchoolClass",
    "Subject",
    "Room",
    "Student",
    "Period",
    "Lesson",
    "LessonResource",
    "LessonState",
    "User",
]
