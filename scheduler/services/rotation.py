from typing import Dict, Iterable

from scheduler.models.class_ref import ClassRef
from scheduler.models.subject import SUBJECTS, Subject
from scheduler.models.time_slot import TIME_SLOTS

RotationMap = Dict[str, Subject]


def rotation_for(ordinal_index: int) -> RotationMap:
    """
    Maps a class's ordinal position to its slot -> subject permutation.

    Slot at position s gets the subject at position (s + ordinal_index % 3) % 3,
    so consecutive classes are offset by one subject and the same slot does not
    demand the same subject from every class.

    Args:
        ordinal_index: Position of the class in the ordered class list

    Returns:
        {"A": Subject, "B": Subject, "C": Subject}
    """
    if ordinal_index < 0:
        raise ValueError(f"ordinal_index must be non-negative, got {ordinal_index}")

    offset = ordinal_index % len(SUBJECTS)
    return {
        slot.key: SUBJECTS[(position + offset) % len(SUBJECTS)]
        for position, slot in enumerate(TIME_SLOTS)
    }


def rotations_for_classes(classes: Iterable[ClassRef]) -> Dict[str, RotationMap]:
    return {class_ref.id: rotation_for(class_ref.ordinal_index) for class_ref in classes}
