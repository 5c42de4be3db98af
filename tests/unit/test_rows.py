from __future__ import annotations

import pytest

from schedule_import.parsing.rows import clean_cell, parse_grid, parse_text


@pytest.mark.parametrize(
    "value,expected",
    [
        ("  Math ", "Math"),
        ('"Math"', "Math"),
        ("' Room 5 '", "Room 5"),
        ('"Math\'', '"Math\''),
        ("", None),
        ("   ", None),
        ('""', None),
        (None, None),
        (305, "305"),
    ],
)
def test_clean_cell(value, expected):
    assert clean_cell(value) == expected


def test_parse_text_numbers_rows_from_header():
    table = parse_text("Subject,Day\nMath,Monday\nPhysics,Tuesday\n", ",")
    assert table.headers == ["Subject", "Day"]
    rows = list(table.rows)
    assert [r.row_number for r in rows] == [2, 3]
    assert rows[0].cells == {"Subject": "Math", "Day": "Monday"}


def test_blank_rows_are_skipped_but_keep_numbering():
    table = parse_text("Subject,Day\n\n , \nMath,Monday\n", ",")
    rows = list(table.rows)
    assert len(rows) == 1
    assert rows[0].row_number == 4


def test_short_records_pad_with_none():
    rows = list(parse_text("Subject,Day,Room\nMath,Monday\n", ",").rows)
    assert rows[0].cells["Room"] is None


def test_header_labels_are_trimmed_and_unquoted():
    table = parse_text(' "Subject" ; Day \nMath;Monday\n', ";")
    assert table.headers == ["Subject", "Day"]


def test_explicit_headers_make_every_record_data():
    table = parse_text("Math,Monday\nPhysics,Tuesday\n", ",", headers=["Subject", "Day"])
    rows = list(table.rows)
    assert [r.row_number for r in rows] == [1, 2]
    assert rows[0].cells["Subject"] == "Math"


def test_quoted_field_with_delimiter():
    rows = list(parse_text('Subject,Room\n"Algebra, advanced",12\n', ",").rows)
    assert rows[0].cells["Subject"] == "Algebra, advanced"


def test_empty_text_has_no_headers_or_rows():
    table = parse_text("", ",")
    assert table.headers == []
    assert list(table.rows) == []


def test_parse_grid():
    grid = [["Subject", "Day", None], ["Math", "1", "x"], [None, None, None]]
    table = parse_grid(grid)
    assert table.headers == ["Subject", "Day", ""]
    rows = list(table.rows)
    assert len(rows) == 1
    # unlabelled column is dropped
    assert rows[0].cells == {"Subject": "Math", "Day": "1"}


def test_repeated_label_keeps_first_non_empty_cell(caplog):
    table = parse_text("Subject,Day,Start Time,End Time,Day\nMath,Monday,9:00,10:00,\n,,9:00,10:00,Friday\n", ",")
    rows = list(table.rows)
    assert rows[0].cells["Day"] == "Monday"
    assert rows[1].cells["Day"] == "Friday"
    assert "Repeated header labels" in caplog.text
