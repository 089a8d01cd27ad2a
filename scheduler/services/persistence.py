import logging
from typing import Dict, List, Optional

from scheduler.db.repository import ScheduleRepository, empty_assignment
from scheduler.exceptions import (
    ClassNotFound,
    InvalidScheduleInput,
    ScheduleConflictError,
    TeacherNotFound,
)
from scheduler.models.schedule_row import Cell, ScheduleRow
from scheduler.models.subject import SUBJECTS, Subject
from scheduler.models.teacher import TeacherRef
from scheduler.models.time_slot import TIME_SLOTS
from scheduler.services.rotation import rotation_for
from scheduler.services.validator import load_teacher_directory, validate_schedule

logger = logging.getLogger(__name__)

ASSIGNABLE_ROLES = ("teacher", "supervisor")


def save_schedule(repository: ScheduleRepository, rows: List[ScheduleRow]) -> int:
    """
    Validates the rows and stores one assignment record per class.

    Any conflict aborts the save before the first write. Once validation has
    passed, classes are written one by one, each fully replacing its three
    subject teachers; a storage failure part-way leaves the earlier classes
    committed.

    Args:
        repository: Storage collaborator
        rows: Schedule rows to commit

    Returns:
        Number of classes saved

    Raises:
        InvalidScheduleInput: rows is empty
        ScheduleConflictError: the rows do not validate
        ClassNotFound: a row references a class that does not exist
    """
    if not rows:
        raise InvalidScheduleInput("rows array required")

    conflicts = validate_schedule(rows, load_teacher_directory(repository))
    if conflicts:
        logger.info(f"Save rejected: {len(conflicts)} conflict(s), first: {conflicts[0].message}")
        raise ScheduleConflictError(conflicts)

    for row in rows:
        teachers = {subject: row.teacher_for_subject(subject.value) for subject in SUBJECTS}
        repository.upsert_assignment(row.class_id, teachers)
        logger.debug(f"Saved assignments for class {row.class_id}")

    logger.info(f"Schedule saved for {len(rows)} classes")
    return len(rows)


def get_current_schedule(repository: ScheduleRepository) -> List[ScheduleRow]:
    """
    Rebuilds the schedule view from stored records.

    Slot positions come from each class's rotation; teachers come from the
    record field of the slot's subject. No validation is done, so the view
    reflects exactly what was stored.
    """
    classes = repository.list_classes()
    records = repository.get_assignments()

    rows = []
    for class_ref in classes:
        record = records.get(class_ref.id) or empty_assignment()
        rotation = rotation_for(class_ref.ordinal_index)
        cells = {}
        for slot in TIME_SLOTS:
            subject = rotation[slot.key]
            cells[slot.key] = Cell(subject=subject.value, teacher_id=record.get(subject.record_field))
        rows.append(ScheduleRow(class_ref=class_ref, cells=cells))
    return rows


def teacher_lookup(repository: ScheduleRepository) -> Dict[str, TeacherRef]:
    """Teachers specialised in one of the subjects, keyed by id"""
    teachers = repository.list_teachers(subjects=[subject.value for subject in SUBJECTS])
    return {teacher.id: teacher for teacher in teachers}


def get_class_assignments(repository: ScheduleRepository, class_id: str) -> Dict[str, Optional[str]]:
    if not repository.class_exists(class_id):
        raise ClassNotFound(class_id)
    return repository.get_assignment(class_id) or empty_assignment()


def parse_assignment_fields(fields: Dict[str, Optional[str]]) -> Dict[Subject, Optional[str]]:
    """
    Converts {"<subject>_teacher_id": id} into {Subject: id}.

    Only keys present in `fields` are returned; an empty value becomes None.
    """
    by_field = {subject.record_field: subject for subject in SUBJECTS}
    updates = {}
    for key, value in (fields or {}).items():
        subject = by_field.get(key)
        if subject is None:
            raise InvalidScheduleInput(f"Unknown assignment field {key}")
        if value is not None and not isinstance(value, str):
            raise InvalidScheduleInput(f"{key} must be a teacher id string or null")
        updates[subject] = value or None
    return updates


def update_class_assignments(repository: ScheduleRepository, class_id: str,
                             fields: Dict[str, Optional[str]]) -> Dict[str, Optional[str]]:
    """
    Updates some subject teachers of one class, leaving the others untouched.

    Unlike save_schedule this merges field by field: a subject absent from
    `fields` keeps its stored teacher, while an explicit null clears it.

    Args:
        repository: Storage collaborator
        class_id: Class to update
        fields: Subset of {"taks_teacher_id", "al7an_teacher_id", "coptic_teacher_id"}

    Returns:
        The class's three subject fields after the update

    Raises:
        ClassNotFound: the class does not exist
        TeacherNotFound: a teacher does not exist or is not teaching staff
        TeacherCapacityExceeded: a teacher already has the maximum number of other classes
    """
    updates = parse_assignment_fields(fields)

    if not repository.class_exists(class_id):
        raise ClassNotFound(class_id)

    teachers = {}
    for teacher_id in updates.values():
        if not teacher_id or teacher_id in teachers:
            continue
        user = repository.get_user(teacher_id)
        if user is None:
            raise TeacherNotFound(teacher_id)
        if user.role not in ASSIGNABLE_ROLES:
            raise TeacherNotFound(teacher_id, f"User {user.name} is not a teacher or supervisor")
        teachers[teacher_id] = user

    # Counted and written in one transaction with the teacher rows locked
    capped_teachers = {teacher_id: user.name for teacher_id, user in teachers.items()}
    assignments = repository.merge_assignment(class_id, updates, capped_teachers=capped_teachers)
    logger.info(f"Updated assignments for class {class_id}: "
                + ", ".join(subject.value for subject in updates))
    return assignments
