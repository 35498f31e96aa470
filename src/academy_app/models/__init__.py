from .defaults import DEFAULT_COURSES, DEFAULT_GROUP_NAME, CourseSeed
from .entities import AppState, Attendance, Course, Group, Session, Student

__all__ = [
    "AppState",
    "Attendance",
    "Course",
    "CourseSeed",
    "DEFAULT_COURSES",
    "DEFAULT_GROUP_NAME",
    "Group",
    "Session",
    "Student",
]
