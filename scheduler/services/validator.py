from typing import Dict, List, Set

from scheduler.db.repository import ScheduleRepository
from scheduler.exceptions import InvalidScheduleInput
from scheduler.models.conflict import Conflict, ConflictType
from scheduler.models.schedule_row import ScheduleRow
from scheduler.models.subject import SUBJECTS
from scheduler.models.teacher import MAX_CLASSES_PER_TEACHER, TeacherRef
from scheduler.models.time_slot import SLOT_KEYS

REQUIRED_SUBJECTS = {subject.value for subject in SUBJECTS}


def load_teacher_directory(repository: ScheduleRepository) -> Dict[str, TeacherRef]:
    """Snapshot of every teacher, keyed by id"""
    return {teacher.id: teacher for teacher in repository.list_teachers()}


def validate_schedule(rows: List[ScheduleRow],
                      teacher_directory: Dict[str, TeacherRef],
                      max_classes_per_teacher: int = MAX_CLASSES_PER_TEACHER) -> List[Conflict]:
    """
    Checks a proposed schedule and returns every constraint violation found.

    Hard constraints:
    - Each row belongs to a class
    - Each class teaches the three subjects exactly once
    - Every referenced teacher exists
    - A teacher with a specialty only teaches that subject
    - A teacher appears at most once per slot across all classes
    - A teacher teaches at most `max_classes_per_teacher` cells

    Unassigned cells are allowed. The function is pure, so the dry-run check
    and the pre-save gate always agree.

    Args:
        rows: Proposed schedule rows
        teacher_directory: Map of teacher id to TeacherRef
        max_classes_per_teacher: Per-teacher class cap

    Returns:
        List of Conflict, empty when the schedule is valid
    """
    conflicts = []
    teacher_totals: Dict[str, int] = {}
    teachers_by_slot: Dict[str, Set[str]] = {slot_key: set() for slot_key in SLOT_KEYS}

    for row in rows:
        if row.class_ref is None or not row.class_ref.id:
            conflicts.append(Conflict(
                type=ConflictType.MISSING_CLASS_INFO,
                class_id="unknown",
                message="Row missing class info",
            ))
            continue

        class_id = row.class_id
        class_name = row.class_ref.display_name

        subjects = {row.cells[k].subject if k in row.cells else None for k in SLOT_KEYS}
        if subjects != REQUIRED_SUBJECTS:
            conflicts.append(Conflict(
                type=ConflictType.DUPLICATE_SUBJECTS,
                class_id=class_id,
                class_name=class_name,
                message=f"Class {class_name} must include 3 distinct subjects",
            ))

        for slot_key in SLOT_KEYS:
            cell = row.cells.get(slot_key)
            if cell is None or not cell.teacher_id:
                continue

            teacher_id = cell.teacher_id
            teacher = teacher_directory.get(teacher_id)
            if teacher is None:
                conflicts.append(Conflict(
                    type=ConflictType.UNKNOWN_TEACHER,
                    class_id=class_id,
                    class_name=class_name,
                    slot=slot_key,
                    teacher_id=teacher_id,
                    message=f"Unknown teacher {teacher_id}",
                ))
                continue

            if teacher.specialty_subject and teacher.specialty_subject != cell.subject:
                conflicts.append(Conflict(
                    type=ConflictType.SUBJECT_MISMATCH,
                    class_id=class_id,
                    class_name=class_name,
                    slot=slot_key,
                    teacher_id=teacher_id,
                    teacher_name=teacher.name,
                    subject=cell.subject,
                    teacher_specialty=teacher.specialty_subject,
                    message=f"Teacher {teacher.name} is not specialized in {cell.subject}",
                ))

            if teacher_id in teachers_by_slot[slot_key]:
                conflicts.append(Conflict(
                    type=ConflictType.SLOT_CONFLICT,
                    class_id=class_id,
                    class_name=class_name,
                    slot=slot_key,
                    teacher_id=teacher_id,
                    teacher_name=teacher.name,
                    message=f"Teacher {teacher.name} appears twice in slot {slot_key}",
                ))
            else:
                teachers_by_slot[slot_key].add(teacher_id)

            teacher_totals[teacher_id] = teacher_totals.get(teacher_id, 0) + 1
            if teacher_totals[teacher_id] > max_classes_per_teacher:
                conflicts.append(Conflict(
                    type=ConflictType.TEACHER_OVERLOAD,
                    class_id=class_id,
                    class_name=class_name,
                    slot=slot_key,
                    teacher_id=teacher_id,
                    teacher_name=teacher.name,
                    current_load=teacher_totals[teacher_id],
                    max_load=max_classes_per_teacher,
                    message=(f"Teacher {teacher.name} exceeds max {max_classes_per_teacher} classes "
                             f"(currently {teacher_totals[teacher_id]})"),
                ))

    return conflicts


def check_schedule(repository: ScheduleRepository, rows: List[ScheduleRow]) -> List[Conflict]:
    """Validates rows against the current teacher directory without persisting anything"""
    if not rows:
        raise InvalidScheduleInput("rows array required")
    return validate_schedule(rows, load_teacher_directory(repository))
