from typing import Any, Dict, List

from scheduler.exceptions import InvalidScheduleInput
from scheduler.models.class_ref import ClassRef
from scheduler.models.schedule_row import Cell, ScheduleRow
from scheduler.models.subject import SUBJECTS
from scheduler.models.teacher import TeacherRef
from scheduler.models.time_slot import SLOT_KEYS, TIME_SLOTS


def parse_rows(data: Any) -> List[ScheduleRow]:
    """
    Converts JSON rows received from RabbitMQ into ScheduleRow objects.

    Expected format:
    [
        {
            "class": {"id": "c1", "location": "Room 101", "level": {"level": 1, "stage": 1}},
            "A": {"subject": "taks", "teacherId": "t1"},
            "B": {"subject": "al7an", "teacherId": null},
            "C": {"subject": "coptic", "teacherId": "t3"}
        },
        ...
    ]

    Rows without a class id keep class_ref=None so the validator can report
    them. The ordinal index of a parsed class is its position in the list;
    it is not used when checking or saving.

    Raises:
        InvalidScheduleInput: rows is not a non-empty list, or a class id,
            subject or teacher id has the wrong type
    """
    if not isinstance(data, list) or not data:
        raise InvalidScheduleInput("rows array required")

    rows = []
    for index, raw in enumerate(data):
        raw = raw if isinstance(raw, dict) else {}
        class_data = raw.get("class")
        class_ref = None
        if isinstance(class_data, dict) and class_data.get("id"):
            class_ref = ClassRef(
                id=_scalar_id(class_data["id"], f"rows[{index}].class.id"),
                ordinal_index=index,
                location=str(class_data.get("location") or ""),
                level=class_data.get("level"),
            )

        cells = {}
        for slot_key in SLOT_KEYS:
            cell = raw.get(slot_key)
            if isinstance(cell, dict):
                cells[slot_key] = _parse_cell(cell, f"rows[{index}].{slot_key}")
        rows.append(ScheduleRow(class_ref=class_ref, cells=cells))
    return rows


def _scalar_id(value: Any, where: str) -> str:
    # bool is an int subclass but never a valid id
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise InvalidScheduleInput(f"{where} must be a string or integer")
    return str(value)


def _parse_cell(cell: Dict[str, Any], where: str) -> Cell:
    subject = cell.get("subject")
    if subject is not None and not isinstance(subject, str):
        raise InvalidScheduleInput(f"{where}.subject must be a string")

    teacher_id = cell.get("teacherId")
    if teacher_id is not None and teacher_id != "":
        teacher_id = _scalar_id(teacher_id, f"{where}.teacherId")
    return Cell(subject=subject, teacher_id=teacher_id or None)


def row_to_dict(row: ScheduleRow) -> Dict[str, Any]:
    payload = {"class": row.class_ref.to_dict() if row.class_ref else None}
    for slot_key in SLOT_KEYS:
        cell = row.cells.get(slot_key)
        payload[slot_key] = cell.to_dict() if cell else None
    return payload


def subject_slot_by_class(rows: List[ScheduleRow]) -> Dict[str, Dict[str, str]]:
    return {
        row.class_id: {slot_key: cell.subject for slot_key, cell in row.cells.items()}
        for row in rows
        if row.class_ref
    }


def schedule_payload(rows: List[ScheduleRow]) -> Dict[str, Any]:
    """Common response body of the generate and read operations"""
    return {
        "timeSlots": [slot.to_dict() for slot in TIME_SLOTS],
        "subjects": [subject.value for subject in SUBJECTS],
        "subjectSlotByClass": subject_slot_by_class(rows),
        "rows": [row_to_dict(row) for row in rows],
    }


def teacher_lookup_to_dict(teachers: Dict[str, TeacherRef]) -> Dict[str, Dict[str, Any]]:
    return {
        teacher_id: {"name": teacher.name, "subject": teacher.specialty_subject}
        for teacher_id, teacher in teachers.items()
    }
