from typing import List, Optional
from scheduler.models.conflict import Conflict


class SchedulerError(Exception):
    """Base class for errors reported back to the caller"""


class InvalidScheduleInput(SchedulerError):
    """The request payload is missing or malformed (e.g., no rows)"""


class ScheduleConflictError(SchedulerError):
    """
    Raised by the save gate when the proposed schedule has conflicts.

    The message is the first conflict's message; the full list is kept
    on `conflicts` for callers that want it.
    """

    def __init__(self, conflicts: List[Conflict]):
        super().__init__(conflicts[0].message)
        self.conflicts = conflicts


class ClassNotFound(SchedulerError):
    def __init__(self, class_id: Optional[str]):
        super().__init__(f"Class {class_id} not found")
        self.class_id = class_id


class TeacherNotFound(SchedulerError):
    def __init__(self, teacher_id: str, message: Optional[str] = None):
        super().__init__(message or f"Teacher {teacher_id} not found")
        self.teacher_id = teacher_id


class TeacherCapacityExceeded(SchedulerError):
    """One or more teachers are already associated with the maximum number of classes"""
