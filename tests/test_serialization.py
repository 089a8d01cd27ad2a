import pytest

from scheduler.exceptions import InvalidScheduleInput
from scheduler.models.class_ref import ClassRef
from scheduler.models.schedule_row import Cell, ScheduleRow
from scheduler.utils.serialization import parse_rows, row_to_dict, schedule_payload


def test_parse_rows_reads_cells_and_class():
    rows = parse_rows([
        {
            "class": {"id": "c1", "location": "Room 1", "level": {"level": 1, "stage": 2}},
            "A": {"subject": "taks", "teacherId": "t1"},
            "B": {"subject": "al7an", "teacherId": ""},
            "C": {"subject": "coptic"},
        }
    ])

    assert rows[0].class_id == "c1"
    assert rows[0].class_ref.level == {"level": 1, "stage": 2}
    assert rows[0].cells == {
        "A": Cell("taks", "t1"),
        "B": Cell("al7an", None),
        "C": Cell("coptic", None),
    }


def test_parse_rows_keeps_rows_without_class():
    rows = parse_rows([{"A": {"subject": "taks"}}, "garbage"])
    assert [row.class_ref for row in rows] == [None, None]


@pytest.mark.parametrize("data", [None, [], {}, "rows"])
def test_parse_rows_requires_a_non_empty_list(data):
    with pytest.raises(InvalidScheduleInput):
        parse_rows(data)


def test_schedule_payload_shape():
    row = parse_rows([{
        "class": {"id": "c1", "location": "Room 1"},
        "A": {"subject": "taks", "teacherId": "t1"},
        "B": {"subject": "al7an", "teacherId": None},
        "C": {"subject": "coptic", "teacherId": None},
    }])[0]

    payload = schedule_payload([row, ScheduleRow(class_ref=None)])

    assert payload["timeSlots"][0] == {"key": "A", "label": "3:30 - 4:10"}
    assert payload["subjects"] == ["taks", "al7an", "coptic"]
    assert payload["subjectSlotByClass"] == {"c1": {"A": "taks", "B": "al7an", "C": "coptic"}}
    assert payload["rows"][0] == row_to_dict(row)
    assert payload["rows"][0]["A"] == {"subject": "taks", "teacherId": "t1"}
    assert payload["rows"][1] == {"class": None, "A": None, "B": None, "C": None}


def _row(class_id="c1", a=None):
    return {
        "class": {"id": class_id, "location": "Room 1"},
        "A": a if a is not None else {"subject": "taks", "teacherId": "t1"},
        "B": {"subject": "al7an"},
        "C": {"subject": "coptic"},
    }


@pytest.mark.parametrize("row", [
    _row(a={"subject": ["taks"], "teacherId": "t1"}),
    _row(a={"subject": {"name": "taks"}, "teacherId": "t1"}),
    _row(a={"subject": 1, "teacherId": "t1"}),
    _row(a={"subject": "taks", "teacherId": ["t1"]}),
    _row(a={"subject": "taks", "teacherId": {"id": "t1"}}),
    _row(a={"subject": "taks", "teacherId": True}),
    _row(class_id=["c1"]),
    _row(class_id={"id": "c1"}),
    _row(class_id=True),
])
def test_parse_rows_rejects_non_scalar_fields(row):
    with pytest.raises(InvalidScheduleInput):
        parse_rows([row])


def test_parse_rows_accepts_integer_ids():
    rows = parse_rows([_row(class_id=7, a={"subject": "taks", "teacherId": 42})])

    assert rows[0].class_id == "7"
    assert rows[0].cells["A"] == Cell("taks", "42")


def test_parsed_class_with_level_is_hashable():
    rows = parse_rows([{"class": {"id": "c1", "location": "Room 1", "level": {"level": 1, "stage": 1}}}])
    class_ref = rows[0].class_ref

    assert hash(class_ref) == hash(ClassRef(id="c1", ordinal_index=0, location="Room 1"))
    assert {class_ref: "c1"}[class_ref] == "c1"
