from dataclasses import dataclass
from typing import Optional

# Each teacher can be associated with at most this many classes
MAX_CLASSES_PER_TEACHER = 3


@dataclass(frozen=True)
class TeacherRef:
    """
    Represents a teacher from the teacher directory.

    Attributes:
        id: Unique identifier for the teacher (user id)
        name: Display name
        specialty_subject: Subject value the teacher is specialised in.
                           When None, specialty checks are skipped.
        role: Directory role (e.g., "teacher", "supervisor")
    """
    id: str
    name: str
    specialty_subject: Optional[str] = None
    role: str = "teacher"
