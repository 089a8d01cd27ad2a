import logging
from dataclasses import dataclass, field
from typing import Dict, List

from scheduler.models.class_ref import ClassRef
from scheduler.models.schedule_row import Cell, ScheduleRow
from scheduler.models.subject import SUBJECTS, Subject
from scheduler.models.teacher import MAX_CLASSES_PER_TEACHER
from scheduler.models.teacher_usage import TeacherUsage
from scheduler.models.time_slot import TIME_SLOTS
from scheduler.models.unmet_cell import UnmetCell
from scheduler.services.rotation import RotationMap

logger = logging.getLogger(__name__)


@dataclass
class AssignmentResult:
    """
    Outcome of one greedy assignment run.

    Attributes:
        schedule: Map of class id to its ScheduleRow
        unmet: Cells no teacher could be found for, in processing order
        teacher_usage: Final load per teacher id (only teachers that got cells)
    """
    schedule: Dict[str, ScheduleRow]
    unmet: List[UnmetCell] = field(default_factory=list)
    teacher_usage: Dict[str, TeacherUsage] = field(default_factory=dict)


def _least_loaded_first(pool: List[str], usage: Dict[str, TeacherUsage]) -> List[str]:
    # sorted() is stable: ties keep the pool's original order
    return sorted(pool, key=lambda teacher_id: usage[teacher_id].total_assigned if teacher_id in usage else 0)


def assign_teachers(classes: List[ClassRef],
                    rotations: Dict[str, RotationMap],
                    pools: Dict[Subject, List[str]],
                    max_classes_per_teacher: int = MAX_CLASSES_PER_TEACHER) -> AssignmentResult:
    """
    Greedily assigns a teacher to every (class, slot) cell.

    Cells are processed subject by subject, then slot by slot (A, B, C), then
    in class order. Each cell gets the least-loaded teacher of the subject's
    pool that is under the class cap and not already teaching in that slot.
    Cells without such a teacher are reported as unmet and left empty; there
    is no backtracking.

    Args:
        classes: Ordered classes to schedule
        rotations: Map of class id to its slot -> subject rotation
        pools: Ordered teacher ids per subject
        max_classes_per_teacher: Per-teacher class cap

    Returns:
        AssignmentResult with the draft schedule and unmet cells
    """
    usage: Dict[str, TeacherUsage] = {}
    schedule = {
        class_ref.id: ScheduleRow(
            class_ref=class_ref,
            cells={
                slot.key: Cell(subject=rotations[class_ref.id][slot.key].value)
                for slot in TIME_SLOTS
            },
        )
        for class_ref in classes
    }
    unmet = []

    for subject in SUBJECTS:
        pool = list(pools.get(subject, []))

        for slot in TIME_SLOTS:
            needing = [c for c in classes if rotations[c.id][slot.key] == subject]

            for class_ref in needing:
                chosen = None
                for teacher_id in _least_loaded_first(pool, usage):
                    teacher_usage = usage.get(teacher_id) or TeacherUsage()
                    if teacher_usage.is_available(slot.key, max_classes_per_teacher):
                        teacher_usage.occupy(slot.key)
                        usage[teacher_id] = teacher_usage
                        chosen = teacher_id
                        break

                if chosen is None:
                    unmet.append(UnmetCell(
                        class_id=class_ref.id,
                        class_name=class_ref.display_name,
                        slot=slot.key,
                        subject=subject.value,
                    ))
                    continue

                schedule[class_ref.id].cells[slot.key].teacher_id = chosen

    if unmet:
        logger.warning(f"{len(unmet)} cell(s) could not be staffed")

    return AssignmentResult(schedule=schedule, unmet=unmet, teacher_usage=usage)
