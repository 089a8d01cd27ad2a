from dataclasses import dataclass

NO_AVAILABLE_TEACHER = "no available teacher (capacity/slot conflict)"


@dataclass(frozen=True)
class UnmetCell:
    """A (class, slot) cell the assignment engine could not staff"""
    class_id: str
    class_name: str
    slot: str
    subject: str
    reason: str = NO_AVAILABLE_TEACHER

    def to_dict(self) -> dict:
        return {
            "classId": self.class_id,
            "className": self.class_name,
            "slot": self.slot,
            "subject": self.subject,
            "reason": self.reason,
        }
