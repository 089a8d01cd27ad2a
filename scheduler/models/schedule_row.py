from dataclasses import dataclass, field
from typing import Dict, Optional
from scheduler.models.class_ref import ClassRef


@dataclass
class Cell:
    """
    One (subject, teacher) pair attached to a (class, slot) pair.

    Attributes:
        subject: Subject value taught in the slot. Hand-edited rows may carry
                 None or an unknown value; the validator reports those.
        teacher_id: Assigned teacher, or None when the cell is unfilled
    """
    subject: Optional[str]
    teacher_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {"subject": self.subject, "teacherId": self.teacher_id}


@dataclass
class ScheduleRow:
    """
    One class and its cells keyed by slot key ("A", "B", "C").

    Attributes:
        class_ref: The class, or None when the incoming row had no class info
        cells: Map of slot key to Cell
    """
    class_ref: Optional[ClassRef]
    cells: Dict[str, Cell] = field(default_factory=dict)

    @property
    def class_id(self) -> Optional[str]:
        return self.class_ref.id if self.class_ref else None

    def teacher_for_subject(self, subject: str) -> Optional[str]:
        """Teacher of the first cell teaching the subject, None if there is none"""
        for cell in self.cells.values():
            if cell.subject == subject:
                return cell.teacher_id or None
        return None
