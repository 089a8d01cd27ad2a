from dataclasses import dataclass


@dataclass(frozen=True)
class TimeSlot:
    """
    Represents one of the fixed periods of the school day.

    Attributes:
        key: Slot identifier ("A", "B" or "C"), ordered A < B < C
        label: Display time range (e.g., "3:30 - 4:10")
    """
    key: str
    label: str

    def to_dict(self) -> dict:
        return {"key": self.key, "label": self.label}


TIME_SLOTS = (
    TimeSlot(key="A", label="3:30 - 4:10"),
    TimeSlot(key="B", label="4:25 - 5:05"),
    TimeSlot(key="C", label="5:20 - 6:00"),
)

SLOT_KEYS = tuple(slot.key for slot in TIME_SLOTS)
