from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ConflictType(str, Enum):
    MISSING_CLASS_INFO = "missing_class_info"
    DUPLICATE_SUBJECTS = "duplicate_subjects"
    UNKNOWN_TEACHER = "unknown_teacher"
    SUBJECT_MISMATCH = "subject_mismatch"
    SLOT_CONFLICT = "slot_conflict"
    TEACHER_OVERLOAD = "teacher_overload"


@dataclass(frozen=True)
class Conflict:
    """
    A constraint violation found in a proposed schedule.

    Only the context relevant to the conflict type is filled; the rest
    stays None and is left out of the serialized form.

    Attributes:
        type: Kind of violation
        message: Human-readable description for the operator
        class_id: Class the offending row belongs to ("unknown" if missing)
        class_name: Class display name
        slot: Slot key of the offending cell
        teacher_id: Teacher referenced by the offending cell
        teacher_name: Teacher display name
        subject: Subject of the offending cell
        teacher_specialty: Specialty of the teacher (subject_mismatch)
        current_load: Running class count of the teacher (teacher_overload)
        max_load: Per-teacher class cap (teacher_overload)
    """
    type: ConflictType
    message: str
    class_id: Optional[str] = None
    class_name: Optional[str] = None
    slot: Optional[str] = None
    teacher_id: Optional[str] = None
    teacher_name: Optional[str] = None
    subject: Optional[str] = None
    teacher_specialty: Optional[str] = None
    current_load: Optional[int] = None
    max_load: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "type": self.type.value,
            "classId": self.class_id,
            "className": self.class_name,
            "slot": self.slot,
            "teacherId": self.teacher_id,
            "teacherName": self.teacher_name,
            "subject": self.subject,
            "teacherSpecialty": self.teacher_specialty,
            "currentLoad": self.current_load,
            "maxLoad": self.max_load,
            "message": self.message,
        }
        return {k: v for k, v in payload.items() if v is not None}
