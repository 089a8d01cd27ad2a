from dataclasses import dataclass, field
from typing import Set


@dataclass
class TeacherUsage:
    """
    Load of one teacher during a single assignment run.

    Attributes:
        total_assigned: Number of cells assigned to the teacher so far
        occupied_slots: Slot keys the teacher is already teaching in
    """
    total_assigned: int = 0
    occupied_slots: Set[str] = field(default_factory=set)

    def is_available(self, slot_key: str, max_classes: int) -> bool:
        return self.total_assigned < max_classes and slot_key not in self.occupied_slots

    def occupy(self, slot_key: str):
        self.total_assigned += 1
        self.occupied_slots.add(slot_key)
