from datetime import datetime, timezone

from icalsync.parser import CalendarMetadata, get_calendar_data, get_events, load_calendar, parse_ics_date

MINIMAL_FEED = (
    "PRODID:-//Acme//EN\r\n"
    "X-WR-CALNAME:Team\r\n"
    "BEGIN:VEVENT\r\n"
    "SUMMARY:Standup\r\n"
    "LOCATION:Room 1\r\n"
    "DTSTART:20240102T090000Z\r\n"
    "DTEND:20240102T093000Z\r\n"
    "END:VEVENT\r\n"
)


def _write(tmp_path, text: str, name: str = "feed.ics"):
    path = tmp_path / name
    path.write_bytes(text.encode("utf-8"))
    return path


def test_minimal_feed_metadata_and_event(tmp_path):
    path = _write(tmp_path, MINIMAL_FEED)

    assert get_calendar_data(path) == CalendarMetadata("-//Acme//EN", "Team")

    events = get_events(path)
    assert len(events) == 1
    e = events[0]
    assert e.summary == "Standup"
    assert e.location == "Room 1"
    assert e.start == datetime(2024, 1, 2, 9, 0, tzinfo=timezone.utc)
    assert e.end == datetime(2024, 1, 2, 9, 30, tzinfo=timezone.utc)
    assert e.raw_start == "20240102T090000Z"
    assert e.owner is None


def test_metadata_stops_at_first_calendar_name(tmp_path):
    path = _write(tmp_path, "PRODID:A\nX-WR-CALNAME:B\nPRODID:C\n")

    assert get_calendar_data(path) == ("A", "B")


def test_metadata_keeps_first_prodid(tmp_path):
    path = _write(tmp_path, "PRODID:first\nPRODID:second\nX-WR-CALNAME:Cal\nX-WR-CALNAME:Other\n")

    meta = get_calendar_data(path)
    assert meta.service == "first"
    assert meta.name == "Cal"


def test_metadata_fields_may_be_absent(tmp_path):
    assert get_calendar_data(_write(tmp_path, "X-WR-CALNAME:Only name\nPRODID:late\n")) == (None, "Only name")
    assert get_calendar_data(_write(tmp_path, "BEGIN:VCALENDAR\nEND:VCALENDAR\n", "empty.ics")) == (None, None)


def test_unterminated_vevent_is_discarded(tmp_path):
    path = _write(
        tmp_path,
        "BEGIN:VEVENT\nSUMMARY:Kept\nDTSTART:20240101\nEND:VEVENT\n"
        "BEGIN:VEVENT\nSUMMARY:Lost\nDTSTART:20240102\n",
    )

    events = get_events(path)
    assert [e.summary for e in events] == ["Kept"]


def test_unparseable_date_still_emits_event(tmp_path, caplog):
    path = _write(
        tmp_path,
        "BEGIN:VEVENT\nSUMMARY:Party\nDTSTART:notadate\nDTEND:20240102T100000\nEND:VEVENT\n",
    )

    with caplog.at_level("WARNING", logger="icalsync.parser"):
        events = get_events(path)

    assert len(events) == 1
    assert events[0].start is None
    assert events[0].raw_start == "notadate"
    assert events[0].end == datetime(2024, 1, 2, 10, 0)
    assert "notadate" in caplog.text


def test_last_duplicate_property_wins(tmp_path):
    path = _write(tmp_path, "BEGIN:VEVENT\nSUMMARY:Old\nSUMMARY:New\nLOCATION:A\nLOCATION:B\nEND:VEVENT\n")

    e = get_events(path)[0]
    assert (e.summary, e.location) == ("New", "B")


def test_nested_alarm_properties_are_ignored(tmp_path):
    path = _write(
        tmp_path,
        "BEGIN:VEVENT\n"
        "SUMMARY:Dentist\n"
        "BEGIN:VALARM\n"
        "SUMMARY:Reminder text\n"
        "DTSTART:19990101\n"
        "END:VALARM\n"
        "DTSTART;VALUE=DATE:20240105\n"
        "END:VEVENT\n",
    )

    events = get_events(path)
    assert len(events) == 1
    assert events[0].summary == "Dentist"
    assert events[0].start == datetime(2024, 1, 5)
    assert events[0].all_day is True


def test_lines_without_colon_are_skipped(tmp_path):
    path = _write(tmp_path, "garbage line\nBEGIN:VEVENT\nno colon here\nSUMMARY:Ok\nEND:VEVENT\n")

    assert [e.summary for e in get_events(path)] == ["Ok"]


def test_value_keeps_text_after_first_colon(tmp_path):
    path = _write(tmp_path, "BEGIN:VEVENT\nSUMMARY:Talk: Python 3\nLOCATION:http://x.test/room\nEND:VEVENT\n")

    e = get_events(path)[0]
    assert e.summary == "Talk: Python 3"
    assert e.location == "http://x.test/room"


def test_event_count_matches_terminated_blocks(tmp_path):
    blocks = "".join(f"BEGIN:VEVENT\nSUMMARY:e{i}\nDTSTART:2024010{i}\nEND:VEVENT\n" for i in range(1, 5))
    path = _write(tmp_path, "BEGIN:VCALENDAR\n" + blocks + "END:VCALENDAR\n")

    assert [e.summary for e in get_events(path)] == ["e1", "e2", "e3", "e4"]


def test_parse_ics_date_formats():
    assert parse_ics_date("20240102") == (datetime(2024, 1, 2), True)
    assert parse_ics_date("20240102T090000") == (datetime(2024, 1, 2, 9), False)
    assert parse_ics_date("20240102T090000Z") == (datetime(2024, 1, 2, 9, tzinfo=timezone.utc), False)
    assert parse_ics_date("Jan 2, 2024") == (None, False)
    assert parse_ics_date("20241301") == (None, False)


def test_load_calendar_deduplicates_feed_events(tmp_path):
    dup = "BEGIN:VEVENT\nSUMMARY:Standup\nDTSTART:20240102T090000Z\nDTEND:20240102T093000Z\nEND:VEVENT\n"
    path = _write(tmp_path, "PRODID:-//Acme//EN\nX-WR-CALNAME:Team\n" + dup + dup)

    cal = load_calendar(path)

    assert (cal.name, cal.service) == ("Team", "-//Acme//EN")
    assert len(cal) == 1
    assert cal.events[0].owner is cal


def test_missing_file_raises(tmp_path):
    import pytest

    with pytest.raises(OSError):
        get_events(tmp_path / "missing.ics")


def test_unterminated_vevent_followed_by_complete_one(tmp_path):
    path = _write(
        tmp_path,
        "BEGIN:VEVENT\nSUMMARY:Lost\nLOCATION:Nowhere\n"
        "BEGIN:VEVENT\nSUMMARY:Good\nEND:VEVENT\n",
    )

    events = get_events(path)

    assert [(e.summary, e.location) for e in events] == [("Good", "")]


def test_byte_order_mark_is_stripped(tmp_path):
    path = tmp_path / "bom.ics"
    path.write_bytes(b"\xef\xbb\xbfPRODID:A\r\nX-WR-CALNAME:B\r\n")

    assert get_calendar_data(path) == ("A", "B")


def test_invalid_utf8_byte_does_not_drop_feed(tmp_path):
    path = tmp_path / "latin1.ics"
    path.write_bytes(
        b"BEGIN:VEVENT\nSUMMARY:Caf\xe9\nEND:VEVENT\n"
        b"BEGIN:VEVENT\nSUMMARY:Ok\nEND:VEVENT\n"
    )

    events = get_events(path)

    assert [e.summary for e in events] == ["Caf\ufffd", "Ok"]
