import pytest

from scheduler.exceptions import InvalidScheduleInput
from scheduler.models.class_ref import ClassRef
from scheduler.models.conflict import ConflictType
from scheduler.models.schedule_row import Cell, ScheduleRow
from scheduler.models.teacher import TeacherRef
from scheduler.services.validator import check_schedule, validate_schedule

DIRECTORY = {
    "t-taks": TeacherRef(id="t-taks", name="Mina", specialty_subject="taks"),
    "t-al7an": TeacherRef(id="t-al7an", name="Bishoy", specialty_subject="al7an"),
    "t-coptic": TeacherRef(id="t-coptic", name="Marina", specialty_subject="coptic"),
    "t-any": TeacherRef(id="t-any", name="Youssef"),
}


def row(class_id, a, b, c):
    """Builds a row from (subject, teacher_id) pairs for slots A, B and C"""
    return ScheduleRow(
        class_ref=ClassRef(id=class_id, ordinal_index=0, location=f"Room {class_id}"),
        cells={key: Cell(subject=s, teacher_id=t) for key, (s, t) in zip("ABC", (a, b, c))},
    )


def types(conflicts):
    return [conflict.type for conflict in conflicts]


def test_valid_schedule_has_no_conflicts():
    rows = [
        row("c1", ("taks", "t-taks"), ("al7an", "t-al7an"), ("coptic", "t-coptic")),
        row("c2", ("al7an", "t-al7an"), ("coptic", "t-coptic"), ("taks", "t-taks")),
    ]
    assert validate_schedule(rows, DIRECTORY) == []


def test_unassigned_cells_are_allowed():
    rows = [row("c1", ("taks", None), ("al7an", None), ("coptic", None))]
    assert validate_schedule(rows, DIRECTORY) == []


def test_same_teacher_twice_in_one_slot_is_a_single_slot_conflict():
    rows = [
        row("c1", ("taks", "t-any"), ("al7an", None), ("coptic", None)),
        row("c2", ("taks", "t-any"), ("coptic", None), ("al7an", None)),
    ]
    conflicts = validate_schedule(rows, DIRECTORY)

    assert types(conflicts) == [ConflictType.SLOT_CONFLICT]
    assert conflicts[0].teacher_id == "t-any"
    assert conflicts[0].slot == "A"
    assert conflicts[0].class_id == "c2"
    assert conflicts[0].message == "Teacher Youssef appears twice in slot A"


def test_repeated_subject_is_reported_once_for_the_class():
    rows = [row("c1", ("taks", None), ("taks", None), ("coptic", None))]
    conflicts = validate_schedule(rows, DIRECTORY)

    assert types(conflicts) == [ConflictType.DUPLICATE_SUBJECTS]
    assert conflicts[0].class_id == "c1"
    assert conflicts[0].message == "Class Room c1 must include 3 distinct subjects"


def test_missing_or_unknown_subject_is_reported():
    missing_cell = ScheduleRow(
        class_ref=ClassRef(id="c1", ordinal_index=0, location="Room 1"),
        cells={"A": Cell("taks"), "B": Cell("al7an")},
    )
    unknown = row("c2", ("taks", None), ("al7an", None), ("math", None))

    assert types(validate_schedule([missing_cell], DIRECTORY)) == [ConflictType.DUPLICATE_SUBJECTS]
    assert types(validate_schedule([unknown], DIRECTORY)) == [ConflictType.DUPLICATE_SUBJECTS]


def test_row_without_class_is_skipped_after_reporting():
    rows = [ScheduleRow(class_ref=None, cells={"A": Cell("taks", "nobody")})]
    conflicts = validate_schedule(rows, DIRECTORY)

    assert types(conflicts) == [ConflictType.MISSING_CLASS_INFO]
    assert conflicts[0].class_id == "unknown"


def test_unknown_teacher_skips_remaining_cell_checks():
    rows = [
        row("c1", ("taks", "ghost"), ("al7an", None), ("coptic", None)),
        row("c2", ("taks", "ghost"), ("coptic", None), ("al7an", None)),
    ]
    conflicts = validate_schedule(rows, DIRECTORY)
    assert types(conflicts) == [ConflictType.UNKNOWN_TEACHER, ConflictType.UNKNOWN_TEACHER]


def test_specialty_mismatch():
    rows = [row("c1", ("taks", "t-coptic"), ("al7an", None), ("coptic", None))]
    conflicts = validate_schedule(rows, DIRECTORY)

    assert types(conflicts) == [ConflictType.SUBJECT_MISMATCH]
    assert conflicts[0].teacher_specialty == "coptic"
    assert conflicts[0].subject == "taks"


def test_teacher_without_specialty_can_teach_anything():
    rows = [row("c1", ("taks", "t-any"), ("al7an", None), ("coptic", None))]
    assert validate_schedule(rows, DIRECTORY) == []


def test_overload_is_reported_on_every_cell_past_the_cap():
    rows = [
        row("c1", ("taks", "t-any"), ("al7an", None), ("coptic", None)),
        row("c2", ("al7an", None), ("taks", "t-any"), ("coptic", None)),
        row("c3", ("al7an", None), ("coptic", None), ("taks", "t-any")),
        row("c4", ("coptic", None), ("al7an", "t-any"), ("taks", None)),
        row("c5", ("coptic", None), ("taks", None), ("al7an", "t-any")),
    ]
    conflicts = validate_schedule(rows, DIRECTORY)
    overloads = [c for c in conflicts if c.type == ConflictType.TEACHER_OVERLOAD]

    assert [c.current_load for c in overloads] == [4, 5]
    assert all(c.max_load == 3 for c in overloads)
    assert overloads[0].message == "Teacher Youssef exceeds max 3 classes (currently 4)"


def test_validation_is_idempotent():
    rows = [
        row("c1", ("taks", "t-coptic"), ("taks", "ghost"), ("coptic", "t-coptic")),
        row("c2", ("taks", "t-coptic"), ("al7an", None), ("coptic", None)),
    ]
    assert validate_schedule(rows, DIRECTORY) == validate_schedule(rows, DIRECTORY)


def test_conflict_serialization_drops_empty_context():
    rows = [row("c1", ("taks", None), ("taks", None), ("coptic", None))]
    payload = validate_schedule(rows, DIRECTORY)[0].to_dict()
    assert payload == {
        "type": "duplicate_subjects",
        "classId": "c1",
        "className": "Room c1",
        "message": "Class Room c1 must include 3 distinct subjects",
    }


def test_check_schedule_uses_teacher_directory(repository, school):
    rows = [row("c1", ("taks", "t-al7an"), ("al7an", None), ("coptic", None))]
    assert types(check_schedule(repository, rows)) == [ConflictType.SUBJECT_MISMATCH]


def test_check_schedule_requires_rows(repository):
    with pytest.raises(InvalidScheduleInput):
        check_schedule(repository, [])
